"""Reconciliation report schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class ReconciliationMismatch(BaseModel):
    """One field on a payment or invoice that disagrees with its allocation rows."""

    field: str
    recorded: Decimal
    allocated: Decimal
    delta: Decimal


class DocumentIssue(BaseModel):
    id: UUID
    number: str
    mismatches: list[ReconciliationMismatch]


class OrphanAllocation(BaseModel):
    id: UUID
    payment_id: UUID
    invoice_id: UUID
    invoice_no: str
    missing_payment: bool
    missing_invoice: bool


class LedgerIssue(BaseModel):
    currency: str
    mismatches: list[ReconciliationMismatch]


class ChargeTotals(BaseModel):
    foreign_bank_charge: Decimal
    local_bank_charge: Decimal


class ReconciliationTotals(BaseModel):
    invoices: ChargeTotals
    payments: ChargeTotals
    allocations: ChargeTotals
    is_foreign_matched: bool
    is_local_matched: bool


class ReconciliationReport(BaseModel):
    payment_issues: list[DocumentIssue] = Field(default_factory=list)
    invoice_issues: list[DocumentIssue] = Field(default_factory=list)
    orphan_allocations: list[OrphanAllocation] = Field(default_factory=list)
    ledger_issues: list[LedgerIssue] = Field(default_factory=list)
    totals: ReconciliationTotals
    has_issues: bool
