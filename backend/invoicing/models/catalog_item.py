from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text

from invoicing.core.database import Base
from invoicing.models.shared import UUIDType, generate_uuid, utc_now


class CatalogItem(Base):
    """Reusable invoice line item with a default JPY unit cost."""

    __tablename__ = "catalog_items"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    item_name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    part_no = Column(String(100), nullable=True)
    item_code = Column(String(100), nullable=True)
    default_unit_price_jpy = Column(Numeric(14, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
