from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text

from invoicing.core.database import Base
from invoicing.models.shared import CURRENT_SCHEMA_VERSION, UUIDType, generate_uuid, utc_now


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class MarkupMode(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class DocumentSource(str, Enum):
    LEGACY = "legacy"
    SYSTEM = "system"


# Statuses whose financial fields are frozen and which cannot be deleted
SETTLED_STATUSES = (InvoiceStatus.PAID.value, InvoiceStatus.PARTIALLY_PAID.value)


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_customer_currency_date", "customer_id", "currency", "date"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_no = Column(String(50), unique=True, index=True, nullable=False)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    customer_name = Column(String(255), nullable=False, default="")
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value)

    # Local-midnight instant of the invoice date (see invoicing.core.dates)
    date = Column(DateTime(timezone=True), nullable=False)

    # Amounts in the invoice currency
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    balance = Column(Numeric(14, 2), nullable=False, default=0)

    # JPY costing
    total_cost = Column(Numeric(14, 2), nullable=True, default=0)
    total_jpy = Column(Numeric(14, 2), nullable=True, default=0)
    total_profit_jpy = Column(Numeric(14, 2), nullable=True, default=0)

    # Cumulative receipts; nullable for rows written before schema version 2
    foreign_bank_charge = Column(Numeric(14, 2), nullable=True, default=0)
    local_bank_charge = Column(Numeric(14, 2), nullable=True, default=0)
    recieved_jpy = Column(Numeric(14, 2), nullable=True, default=0)

    # Units of invoice currency per 1 JPY
    exchange_rate = Column(Numeric(14, 6), nullable=True)
    markup_mode = Column(String(10), nullable=True, default=MarkupMode.PERCENT.value)
    markup_value = Column(Numeric(14, 2), nullable=True, default=0)
    items_per_page = Column(Integer, nullable=True)
    remarks = Column(Text, nullable=True)
    invoice_link = Column(String(500), nullable=True)
    bank_account_id = Column(String(100), nullable=True)
    bank_account = Column(JSON, nullable=True)
    item_groups = Column(JSON, nullable=True)
    template_version = Column(String(20), nullable=True)
    document_source = Column(String(20), nullable=True, default=DocumentSource.SYSTEM.value)

    schema_version = Column(Integer, nullable=False, default=CURRENT_SCHEMA_VERSION)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
