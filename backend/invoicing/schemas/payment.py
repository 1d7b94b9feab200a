"""Payment schemas."""

import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from invoicing.core.dates import to_local_date
from invoicing.schemas.payment_allocation import PaymentAllocationResponse


class AllocationInput(BaseModel):
    """Manual allocation of part of a payment to one invoice."""

    invoice_id: UUID
    allocated_amount: Decimal = Field(..., ge=0)


class AllocationRequest(BaseModel):
    """Inputs shared by the allocation preview and payment creation."""

    customer_id: UUID
    currency: str = Field(..., min_length=3, max_length=3)
    amount: Decimal = Field(..., ge=0)
    foreign_bank_charge: Decimal = Field(default=Decimal("0"), ge=0)
    local_bank_charge: Decimal = Field(default=Decimal("0"), ge=0)
    jpy_amount: Decimal | None = Field(
        default=None,
        ge=0,
        description="JPY actually credited; derived for JPY payments, required otherwise",
    )
    charge_invoice_id: UUID | None = None
    allocations: list[AllocationInput] | None = Field(
        default=None,
        description="Manual allocation per invoice; oldest-first allocation when omitted",
    )


class PaymentCreate(AllocationRequest):
    """Schema for recording a received payment."""

    payment_no: str | None = Field(default=None, max_length=50)
    payment_date: dt.date
    date: dt.date | None = Field(
        default=None, description="Credit date used for aging; defaults to payment_date"
    )


class AllocationDraftResponse(BaseModel):
    invoice_id: UUID
    invoice_no: str
    balance: Decimal
    allocated_amount: Decimal
    foreign_bank_charge: Decimal
    local_bank_charge: Decimal
    recieved_jpy: Decimal
    exchange_rate: Decimal

    model_config = {"from_attributes": True}


class AllocationPreviewResponse(BaseModel):
    """Draft allocation shown before a payment is submitted."""

    allocations: list[AllocationDraftResponse]
    exchange_rate: Decimal
    jpy_amount: Decimal | None
    total_allocated: Decimal
    total_received_jpy: Decimal
    charge_invoice_id: UUID | None
    errors: list[str]


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_no: str
    customer_id: UUID
    customer_name: str
    currency: str
    amount: Decimal
    exchange_rate: Decimal
    allocated_amount: Decimal
    amount_in_jpy: Decimal
    foreign_bank_charge: Decimal | None
    local_bank_charge: Decimal | None
    payment_date: dt.date | None
    date: dt.date
    schema_version: int
    created_at: dt.datetime

    @field_validator("payment_date", "date", mode="before")
    @classmethod
    def stored_instant_to_local_date(cls, value: Any) -> Any:
        if isinstance(value, dt.datetime):
            return to_local_date(value)
        return value


class PaymentDetailResponse(PaymentResponse):
    allocations: list[PaymentAllocationResponse] = Field(default_factory=list)
