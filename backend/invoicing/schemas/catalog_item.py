from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CatalogItemCreate(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    part_no: str | None = Field(default=None, max_length=100)
    item_code: str | None = Field(default=None, max_length=100)
    default_unit_price_jpy: Decimal = Field(default=Decimal("0"), ge=0)


class CatalogItemUpdate(BaseModel):
    item_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    part_no: str | None = Field(default=None, max_length=100)
    item_code: str | None = Field(default=None, max_length=100)
    default_unit_price_jpy: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None


class CatalogItemResponse(BaseModel):
    id: UUID
    item_name: str
    description: str | None
    part_no: str | None
    item_code: str | None
    default_unit_price_jpy: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
