"""Payment repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.sorting import apply_order_by
from invoicing.models.payment import Payment


class PaymentRepository:
    """Repository for Payment model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        currency: str | None = None,
        order_by: str | None = None,
    ) -> list[Payment]:
        """Get all payments with optional filters."""
        query = self.db.query(Payment)

        if customer_id:
            query = query.filter(Payment.customer_id == customer_id)
        if currency:
            query = query.filter(Payment.currency == currency.upper())

        query = apply_order_by(query, Payment, order_by, default_field="date")
        return query.offset(skip).limit(limit).all()

    def get_every(self) -> list[Payment]:
        return self.db.query(Payment).all()

    def get_by_id(self, payment_id: UUID) -> Payment | None:
        """Get a payment by ID."""
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_latest_for_customer(self, customer_id: UUID) -> Payment | None:
        """Get the most recently created payment for a customer."""
        return (
            self.db.query(Payment)
            .filter(Payment.customer_id == customer_id)
            .order_by(Payment.created_at.desc())
            .first()
        )

    def add(self, payment: Payment) -> Payment:
        """Stage a new payment in the current transaction without committing."""
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_below_schema_version(self, schema_version: int) -> list[Payment]:
        """Rows written under an older document layout."""
        return self.db.query(Payment).filter(Payment.schema_version < schema_version).all()
