from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CurrencyCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=3)
    name: str = Field(default="", max_length=100)


class CurrencyResponse(BaseModel):
    id: UUID
    code: str
    name: str
    total_amount: Decimal
    amount_due: Decimal
    amount_paid: Decimal
    amount_in_jpy: Decimal
    foreign_bank_charge: Decimal
    local_bank_charge: Decimal

    model_config = {"from_attributes": True}
