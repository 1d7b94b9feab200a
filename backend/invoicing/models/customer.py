from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text

from invoicing.core.database import Base
from invoicing.models.shared import UUIDType, generate_uuid, utc_now


class Customer(Base):
    __tablename__ = "customers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    # Cumulative JPY credited across all of the customer's payments
    amount_in_jpy = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
