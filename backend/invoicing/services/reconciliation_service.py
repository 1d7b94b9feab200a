"""Read-only consistency check between payments, invoices and allocation rows.

Every payment and invoice stores running totals that should equal the sum
of its allocation rows. ``build_reconciliation_report`` recomputes those sums
and reports every record that drifted by more than the tolerance, allocation
rows pointing at missing records, and per-currency ledger drift.

Ledger rows are seeded out-of-band and may carry opening totals, so ledger
drift is listed in ``ledger_issues`` without raising ``has_issues``.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from invoicing.core.config import settings
from invoicing.core.money import ZERO, is_close, round2, to_decimal
from invoicing.repositories.currency_repository import CurrencyRepository
from invoicing.repositories.invoice_repository import InvoiceRepository
from invoicing.repositories.payment_allocation_repository import PaymentAllocationRepository
from invoicing.repositories.payment_repository import PaymentRepository
from invoicing.schemas.reconciliation import (
    ChargeTotals,
    DocumentIssue,
    LedgerIssue,
    OrphanAllocation,
    ReconciliationMismatch,
    ReconciliationReport,
    ReconciliationTotals,
)

logger = logging.getLogger(__name__)

ALLOCATION_FIELDS = ("allocated_amount", "foreign_bank_charge", "local_bank_charge", "recieved_jpy")

# Stored field on the payment / invoice compared against each summed allocation field
PAYMENT_FIELDS = {
    "foreign_bank_charge": "foreign_bank_charge",
    "local_bank_charge": "local_bank_charge",
    "allocated_amount": "allocated_amount",
    "amount_in_jpy": "recieved_jpy",
}
INVOICE_FIELDS = {
    "foreign_bank_charge": "foreign_bank_charge",
    "local_bank_charge": "local_bank_charge",
    "amount_paid": "allocated_amount",
    "recieved_jpy": "recieved_jpy",
}
LEDGER_FIELDS = {
    "amount_paid": "allocated_amount",
    "amount_in_jpy": "amount_in_jpy",
    "foreign_bank_charge": "foreign_bank_charge",
    "local_bank_charge": "local_bank_charge",
}


def _sum_by(rows: Iterable[Any], key: str) -> dict[Any, dict[str, Decimal]]:
    sums: dict[Any, dict[str, Decimal]] = defaultdict(
        lambda: {name: ZERO for name in ALLOCATION_FIELDS}
    )
    for row in rows:
        group = sums[getattr(row, key)]
        for name in ALLOCATION_FIELDS:
            group[name] += to_decimal(getattr(row, name))
    return sums


def _mismatches(
    record: Any,
    sums: dict[str, Decimal],
    fields: dict[str, str],
    tolerance: Decimal,
) -> list[ReconciliationMismatch]:
    result = []
    for stored_field, summed_field in fields.items():
        recorded = round2(getattr(record, stored_field))
        allocated = round2(sums[summed_field])
        if not is_close(recorded, allocated, tolerance):
            result.append(
                ReconciliationMismatch(
                    field=stored_field,
                    recorded=recorded,
                    allocated=allocated,
                    delta=round2(recorded - allocated),
                )
            )
    return result


def _charge_totals(rows: Iterable[Any]) -> ChargeTotals:
    fbc = ZERO
    lbc = ZERO
    for row in rows:
        fbc += to_decimal(row.foreign_bank_charge)
        lbc += to_decimal(row.local_bank_charge)
    return ChargeTotals(foreign_bank_charge=round2(fbc), local_bank_charge=round2(lbc))


def build_reconciliation_report(
    invoices: Sequence[Any],
    payments: Sequence[Any],
    allocations: Sequence[Any],
    ledgers: Sequence[Any] = (),
    tolerance: Decimal = Decimal("0.01"),
) -> ReconciliationReport:
    """Compare stored totals with allocation sums.

    Args:
        invoices: Invoice rows (``id``, ``invoice_no``, charges,
            ``amount_paid``, ``recieved_jpy``).
        payments: Payment rows (``id``, ``payment_no``, ``currency``, charges,
            ``allocated_amount``, ``amount_in_jpy``).
        allocations: PaymentAllocation rows.
        ledgers: Currency ledger rows; each is compared with the payments in
            its currency. Skipped when empty.
        tolerance: Largest difference still treated as equal.

    Returns:
        The report. ``has_issues`` is False only when no payment or invoice
        drifted, no allocation is orphaned and the three charge totals agree.
        Ledger drift is reported on its own.
    """
    tolerance = to_decimal(tolerance)
    by_payment = _sum_by(allocations, "payment_id")
    by_invoice = _sum_by(allocations, "invoice_id")
    payment_ids = {payment.id for payment in payments}
    invoice_ids = {invoice.id for invoice in invoices}

    payment_issues = []
    for payment in payments:
        mismatches = _mismatches(payment, by_payment[payment.id], PAYMENT_FIELDS, tolerance)
        if mismatches:
            payment_issues.append(
                DocumentIssue(id=payment.id, number=str(payment.payment_no), mismatches=mismatches)
            )

    invoice_issues = []
    for invoice in invoices:
        mismatches = _mismatches(invoice, by_invoice[invoice.id], INVOICE_FIELDS, tolerance)
        if mismatches:
            invoice_issues.append(
                DocumentIssue(id=invoice.id, number=str(invoice.invoice_no), mismatches=mismatches)
            )

    orphans = [
        OrphanAllocation(
            id=row.id,
            payment_id=row.payment_id,
            invoice_id=row.invoice_id,
            invoice_no=str(row.invoice_no),
            missing_payment=row.payment_id not in payment_ids,
            missing_invoice=row.invoice_id not in invoice_ids,
        )
        for row in allocations
        if row.payment_id not in payment_ids or row.invoice_id not in invoice_ids
    ]

    ledger_issues = []
    payments_by_currency: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {name: ZERO for name in LEDGER_FIELDS.values()}
    )
    for payment in payments:
        group = payments_by_currency[str(payment.currency).upper()]
        for name in LEDGER_FIELDS.values():
            group[name] += to_decimal(getattr(payment, name))
    for ledger_row in ledgers:
        code = str(ledger_row.code).upper()
        mismatches = _mismatches(ledger_row, payments_by_currency[code], LEDGER_FIELDS, tolerance)
        if mismatches:
            ledger_issues.append(LedgerIssue(currency=code, mismatches=mismatches))

    invoice_totals = _charge_totals(invoices)
    payment_totals = _charge_totals(payments)
    allocation_totals = _charge_totals(allocations)
    is_foreign_matched = is_close(
        invoice_totals.foreign_bank_charge, payment_totals.foreign_bank_charge, tolerance
    ) and is_close(
        payment_totals.foreign_bank_charge, allocation_totals.foreign_bank_charge, tolerance
    )
    is_local_matched = is_close(
        invoice_totals.local_bank_charge, payment_totals.local_bank_charge, tolerance
    ) and is_close(
        payment_totals.local_bank_charge, allocation_totals.local_bank_charge, tolerance
    )

    has_issues = bool(
        payment_issues
        or invoice_issues
        or orphans
        or not is_foreign_matched
        or not is_local_matched
    )
    return ReconciliationReport(
        payment_issues=payment_issues,
        invoice_issues=invoice_issues,
        orphan_allocations=orphans,
        ledger_issues=ledger_issues,
        totals=ReconciliationTotals(
            invoices=invoice_totals,
            payments=payment_totals,
            allocations=allocation_totals,
            is_foreign_matched=is_foreign_matched,
            is_local_matched=is_local_matched,
        ),
        has_issues=has_issues,
    )


class ReconciliationService:
    """Loads every payment, invoice, allocation and ledger row and checks them."""

    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.currency_repo = CurrencyRepository(db)

    def run(self, include_ledgers: bool = True) -> ReconciliationReport:
        report = build_reconciliation_report(
            invoices=self.invoice_repo.get_every(),
            payments=self.payment_repo.get_every(),
            allocations=self.allocation_repo.get_all(),
            ledgers=self.currency_repo.get_all() if include_ledgers else (),
            tolerance=settings.RECONCILIATION_TOLERANCE,
        )
        if report.has_issues:
            logger.warning(
                "Reconciliation found %d payment, %d invoice, %d orphan and %d ledger issue(s)",
                len(report.payment_issues),
                len(report.invoice_issues),
                len(report.orphan_allocations),
                len(report.ledger_issues),
            )
        elif report.ledger_issues:
            logger.info(
                "Reconciliation clean; %d ledger(s) differ from payment totals",
                len(report.ledger_issues),
            )
        else:
            logger.info("Reconciliation clean")
        return report

