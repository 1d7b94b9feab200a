"""PaymentAllocation model - the portion of one payment credited to one invoice."""

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String

from invoicing.core.database import Base
from invoicing.models.shared import UUIDType, generate_uuid, utc_now


class PaymentAllocation(Base):
    """Immutable join row between a payment and an invoice.

    Rows are inserted when a payment is applied and deleted when it is
    reversed; they are never updated in place. At most one row per payment
    carries non-zero bank charges (the charge invoice).
    """

    __tablename__ = "payment_allocations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_id = Column(
        UUIDType, ForeignKey("payments.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    invoice_no = Column(String(50), nullable=False)
    allocated_amount = Column(Numeric(14, 2), nullable=False)
    foreign_bank_charge = Column(Numeric(14, 2), nullable=False, default=0)
    local_bank_charge = Column(Numeric(14, 2), nullable=False, default=0)
    recieved_jpy = Column(Numeric(14, 2), nullable=False, default=0)
    exchange_rate = Column(Numeric(14, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
