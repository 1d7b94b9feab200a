import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from invoicing.core.dates import to_local_date
from invoicing.models.invoice import InvoiceStatus, MarkupMode


class InvoiceItemInput(BaseModel):
    """A line as submitted from the invoice form, before pricing."""

    line_no: int | None = None
    items_catalog_id: UUID | None = None
    item_name: str = ""
    description: str | None = None
    part_no: str | None = None
    item_code: str | None = None
    cost: Decimal | None = None
    quantity: Decimal = Decimal("1")
    markup_mode: MarkupMode | None = None
    markup_value: Decimal | None = None


class InvoiceItemGroupInput(BaseModel):
    id: str | None = None
    name: str = ""
    is_show: bool = True
    items: list[InvoiceItemInput] = Field(default_factory=list)


class InvoiceItem(BaseModel):
    """A priced invoice line as stored on the invoice."""

    line_no: int
    items_catalog_id: UUID | None = None
    item_name: str
    description: str | None = None
    part_no: str | None = None
    item_code: str | None = None
    cost: Decimal
    quantity: Decimal
    markup_mode: MarkupMode | None = None
    markup_value: Decimal | None = None
    unit_price_jpy: Decimal
    unit_price: Decimal
    total_price: Decimal


class InvoiceItemGroup(BaseModel):
    id: str
    name: str = ""
    is_show: bool = True
    items: list[InvoiceItem] = Field(default_factory=list)


class InvoiceCreate(BaseModel):
    invoice_no: str = Field(..., min_length=1, max_length=50)
    customer_id: UUID
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    date: dt.date
    status: InvoiceStatus = InvoiceStatus.PENDING
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    markup_mode: MarkupMode = MarkupMode.PERCENT
    markup_value: Decimal | None = Field(default=None, ge=0)
    items_per_page: int | None = Field(default=None, ge=1)
    remarks: str | None = None
    invoice_link: str | None = Field(default=None, max_length=500)
    bank_account_id: str | None = None
    template_version: str | None = Field(default=None, max_length=20)
    item_groups: list[InvoiceItemGroupInput] = Field(default_factory=list)

    @field_validator("status")
    @classmethod
    def status_must_be_open(cls, value: InvoiceStatus) -> InvoiceStatus:
        if value not in (InvoiceStatus.DRAFT, InvoiceStatus.PENDING):
            raise ValueError("New invoices must be draft or pending")
        return value


class InvoiceUpdate(BaseModel):
    invoice_no: str | None = Field(default=None, min_length=1, max_length=50)
    customer_id: UUID | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    date: dt.date | None = None
    exchange_rate: Decimal | None = Field(default=None, gt=0)
    markup_mode: MarkupMode | None = None
    markup_value: Decimal | None = Field(default=None, ge=0)
    items_per_page: int | None = Field(default=None, ge=1)
    remarks: str | None = None
    invoice_link: str | None = Field(default=None, max_length=500)
    bank_account_id: str | None = None
    template_version: str | None = Field(default=None, max_length=20)
    item_groups: list[InvoiceItemGroupInput] | None = None


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_no: str
    customer_id: UUID
    customer_name: str
    currency: str
    status: str
    date: dt.date
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    total_cost: Decimal | None
    total_jpy: Decimal | None
    total_profit_jpy: Decimal | None
    foreign_bank_charge: Decimal | None
    local_bank_charge: Decimal | None
    recieved_jpy: Decimal | None
    exchange_rate: Decimal | None
    markup_mode: str | None
    markup_value: Decimal | None
    items_per_page: int | None
    remarks: str | None
    invoice_link: str | None
    bank_account_id: str | None
    bank_account: dict[str, Any] | None
    item_groups: list[dict[str, Any]] | None
    template_version: str | None
    document_source: str | None
    schema_version: int
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

    @field_validator("date", mode="before")
    @classmethod
    def stored_instant_to_local_date(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return to_local_date(value)
        return value
