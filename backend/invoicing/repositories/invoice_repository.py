from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.sorting import apply_order_by
from invoicing.models.invoice import Invoice, InvoiceStatus


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        currency: str | None = None,
        status: InvoiceStatus | None = None,
        order_by: str | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)

        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if currency:
            query = query.filter(Invoice.currency == currency.upper())
        if status:
            query = query.filter(Invoice.status == status.value)

        query = apply_order_by(query, Invoice, order_by, default_field="date")
        return query.offset(skip).limit(limit).all()

    def get_every(self) -> list[Invoice]:
        return self.db.query(Invoice).all()

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_by_invoice_no(self, invoice_no: str) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.invoice_no == invoice_no).first()

    def get_open_for_customer(self, customer_id: UUID, currency: str) -> list[Invoice]:
        """Invoices that can receive a payment, oldest first.

        Drafts are excluded; ties on the invoice date fall back to creation
        order so allocation is deterministic.
        """
        return (
            self.db.query(Invoice)
            .filter(
                Invoice.customer_id == customer_id,
                Invoice.currency == currency.upper(),
                Invoice.status != InvoiceStatus.DRAFT.value,
                Invoice.balance > 0,
            )
            .order_by(Invoice.date.asc(), Invoice.created_at.asc())
            .all()
        )

    def add(self, invoice: Invoice) -> Invoice:
        """Stage a new invoice in the current transaction without committing."""
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def get_below_schema_version(self, schema_version: int) -> list[Invoice]:
        """Rows written under an older document layout."""
        return self.db.query(Invoice).filter(Invoice.schema_version < schema_version).all()
