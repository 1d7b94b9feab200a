from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class BankAccount(BaseModel):
    """Bank account printed on invoices; snapshotted onto each invoice that selects it."""

    id: str = Field(..., min_length=1, max_length=100)
    bank_name: str = Field(default="", max_length=255)
    branch_name: str | None = None
    account_name: str | None = None
    account_number: str | None = None
    swift_code: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    is_default: bool = False


class InvoiceSettingsUpdate(BaseModel):
    company_name: str | None = Field(default=None, max_length=255)
    company_address: str | None = None
    phone: str | None = Field(default=None, max_length=50)
    fax: str | None = Field(default=None, max_length=50)
    logo_url: str | None = Field(default=None, max_length=500)
    bank_accounts: list[BankAccount] | None = None
    bank_notes: str | None = None
    signatory_name: str | None = Field(default=None, max_length=255)
    signatory_title: str | None = Field(default=None, max_length=255)
    footer_notes: str | None = None


class InvoiceSettingsResponse(BaseModel):
    id: UUID
    company_name: str
    company_address: str
    phone: str | None
    fax: str | None
    logo_url: str | None
    bank_accounts: list[BankAccount]
    bank_notes: str | None
    signatory_name: str | None
    signatory_title: str | None
    footer_notes: str | None
    updated_at: datetime

    model_config = {"from_attributes": True}
