"""Per-currency running totals used by dashboards and reconciliation."""

from sqlalchemy import Column, Integer, Numeric, String

from invoicing.core.database import Base
from invoicing.models.shared import UUIDType, generate_uuid


class CurrencyLedger(Base):
    """Denormalized ledger aggregate, one row per currency code.

    Mutated by invoice create/update/delete and payment apply/reverse.
    ``amount_due`` is clamped at zero on every mutation.
    """

    __tablename__ = "currencies"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    code = Column(String(3), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False, default="")
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    amount_due = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    amount_in_jpy = Column(Numeric(14, 2), nullable=False, default=0)
    foreign_bank_charge = Column(Numeric(14, 2), nullable=False, default=0)
    local_bank_charge = Column(Numeric(14, 2), nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}
