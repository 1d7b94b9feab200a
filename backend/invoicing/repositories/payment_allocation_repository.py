"""Payment allocation repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.models.payment_allocation import PaymentAllocation


class PaymentAllocationRepository:
    """Repository for PaymentAllocation model.

    Allocation rows are written and removed only inside the payment apply and
    reverse transactions, so nothing here commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[PaymentAllocation]:
        return self.db.query(PaymentAllocation).all()

    def get_by_payment_id(self, payment_id: UUID) -> list[PaymentAllocation]:
        """Get all allocations for a payment."""
        return (
            self.db.query(PaymentAllocation)
            .filter(PaymentAllocation.payment_id == payment_id)
            .order_by(PaymentAllocation.created_at.asc())
            .all()
        )

    def get_by_invoice_id(self, invoice_id: UUID) -> list[PaymentAllocation]:
        """Get all allocations credited to an invoice."""
        return (
            self.db.query(PaymentAllocation)
            .filter(PaymentAllocation.invoice_id == invoice_id)
            .order_by(PaymentAllocation.created_at.asc())
            .all()
        )

    def add(self, allocation: PaymentAllocation) -> PaymentAllocation:
        self.db.add(allocation)
        return allocation
