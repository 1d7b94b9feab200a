"""Payment model - one receipt of funds from a customer."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from invoicing.core.database import Base
from invoicing.models.shared import CURRENT_SCHEMA_VERSION, UUIDType, generate_uuid, utc_now


class Payment(Base):
    """Payment model.

    ``exchange_rate`` is the realized JPY-per-unit rate derived from the JPY
    actually credited, not a quoted market rate. ``payment_date`` is when the
    funds arrived; ``date`` is the accounting (credit) date used for aging.
    """

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_no = Column(String(50), nullable=False, index=True)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_name = Column(String(255), nullable=False, default="")
    currency = Column(String(3), nullable=False, default="USD")

    amount = Column(Numeric(14, 2), nullable=False)
    exchange_rate = Column(Numeric(14, 2), nullable=False, default=0)
    allocated_amount = Column(Numeric(14, 2), nullable=False, default=0)
    amount_in_jpy = Column(Numeric(14, 2), nullable=False, default=0)
    # Nullable for rows written before schema version 2
    foreign_bank_charge = Column(Numeric(14, 2), nullable=True, default=0)
    local_bank_charge = Column(Numeric(14, 2), nullable=True, default=0)

    payment_date = Column(DateTime(timezone=True), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)

    schema_version = Column(Integer, nullable=False, default=CURRENT_SCHEMA_VERSION)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
