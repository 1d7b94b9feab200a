"""One-time upgrade of invoices and payments written under the old layout.

Schema version 1 rows predate charge-aware payments: invoices may lack the
bank charge and received-JPY totals, payments may lack a payment date, and
dates may not be normalized to local midnight. The backfill fills the gaps
with neutral values and stamps each row with the current version, so it is
safe to run repeatedly.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.database import atomic
from invoicing.core.dates import is_local_midnight, to_local_midnight
from invoicing.core.money import ZERO, round2
from invoicing.models.invoice import DocumentSource, Invoice
from invoicing.models.payment import Payment
from invoicing.models.shared import CURRENT_SCHEMA_VERSION
from invoicing.repositories.invoice_repository import InvoiceRepository
from invoicing.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)


@dataclass
class BackfillResult:
    invoice_ids: list[UUID] = field(default_factory=list)
    payment_ids: list[UUID] = field(default_factory=list)

    @property
    def invoices_updated(self) -> int:
        return len(self.invoice_ids)

    @property
    def payments_updated(self) -> int:
        return len(self.payment_ids)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _normalized(value: datetime | None) -> datetime | None:
    """Local midnight for a stored instant, or ``None`` when it already is one."""
    if value is None:
        return None
    value = _as_utc(value)
    if is_local_midnight(value):
        return None
    return to_local_midnight(value)


def upgrade_invoice(invoice: Invoice) -> None:
    for name in ("foreign_bank_charge", "local_bank_charge", "recieved_jpy"):
        if getattr(invoice, name) is None:
            setattr(invoice, name, round2(ZERO))
    if not invoice.item_groups:
        invoice.document_source = DocumentSource.LEGACY.value  # type: ignore[assignment]
    elif invoice.document_source is None:
        invoice.document_source = DocumentSource.SYSTEM.value  # type: ignore[assignment]
    normalized = _normalized(invoice.date)  # type: ignore[arg-type]
    if normalized is not None:
        invoice.date = normalized  # type: ignore[assignment]
    invoice.schema_version = CURRENT_SCHEMA_VERSION  # type: ignore[assignment]


def upgrade_payment(payment: Payment) -> None:
    for name in ("foreign_bank_charge", "local_bank_charge"):
        if getattr(payment, name) is None:
            setattr(payment, name, round2(ZERO))
    normalized_date = _normalized(payment.date)  # type: ignore[arg-type]
    if normalized_date is not None:
        payment.date = normalized_date  # type: ignore[assignment]
    if payment.payment_date is None:
        payment.payment_date = payment.date
    else:
        normalized_payment_date = _normalized(payment.payment_date)  # type: ignore[arg-type]
        if normalized_payment_date is not None:
            payment.payment_date = normalized_payment_date  # type: ignore[assignment]
    payment.schema_version = CURRENT_SCHEMA_VERSION  # type: ignore[assignment]


class SchemaMigrationService:
    """Upgrades legacy invoice and payment rows to the current layout."""

    def __init__(self, db: Session):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.payment_repo = PaymentRepository(db)

    def backfill_legacy_records(self, dry_run: bool = False) -> BackfillResult:
        """Upgrade every row below the current schema version in one transaction.

        With ``dry_run`` the rows that would change are reported and nothing
        is written.
        """
        invoices = self.invoice_repo.get_below_schema_version(CURRENT_SCHEMA_VERSION)
        payments = self.payment_repo.get_below_schema_version(CURRENT_SCHEMA_VERSION)
        result = BackfillResult(
            invoice_ids=[UUID(str(invoice.id)) for invoice in invoices],
            payment_ids=[UUID(str(payment.id)) for payment in payments],
        )
        if dry_run:
            logger.info(
                "Backfill dry run: %d invoice(s) and %d payment(s) need upgrading",
                result.invoices_updated,
                result.payments_updated,
            )
            return result

        with atomic(self.db):
            for invoice in invoices:
                upgrade_invoice(invoice)
                logger.info(
                    "Upgraded invoice %s to schema %d", invoice.invoice_no, CURRENT_SCHEMA_VERSION
                )
            for payment in payments:
                upgrade_payment(payment)
                logger.info(
                    "Upgraded payment %s to schema %d", payment.payment_no, CURRENT_SCHEMA_VERSION
                )

        logger.info(
            "Backfill complete: %d invoice(s), %d payment(s)",
            result.invoices_updated,
            result.payments_updated,
        )
        return result
