"""Company and bank details printed on invoice documents."""

from sqlalchemy import JSON, Column, DateTime, String, Text

from invoicing.core.database import Base
from invoicing.models.shared import UUIDType, generate_uuid, utc_now


class InvoiceSettings(Base):
    """Single-row settings table for invoice document metadata."""

    __tablename__ = "invoice_settings"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    company_name = Column(String(255), nullable=False, default="")
    company_address = Column(Text, nullable=False, default="")
    phone = Column(String(50), nullable=True)
    fax = Column(String(50), nullable=True)
    logo_url = Column(String(500), nullable=True)
    bank_accounts = Column(JSON, nullable=False, default=list)
    bank_notes = Column(Text, nullable=True)
    signatory_name = Column(String(255), nullable=True)
    signatory_title = Column(String(255), nullable=True)
    footer_notes = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
