"""Currency ledger repository for data access."""

from sqlalchemy.orm import Session

from invoicing.core.errors import ValidationError
from invoicing.models.currency import CurrencyLedger
from invoicing.schemas.currency import CurrencyCreate


class CurrencyRepository:
    """Repository for CurrencyLedger model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[CurrencyLedger]:
        return self.db.query(CurrencyLedger).order_by(CurrencyLedger.code.asc()).all()

    def get_by_code(self, code: str) -> CurrencyLedger | None:
        return (
            self.db.query(CurrencyLedger)
            .filter(CurrencyLedger.code == code.upper())
            .first()
        )

    def create(self, data: CurrencyCreate) -> CurrencyLedger:
        """Seed a ledger row for a currency with zeroed running totals."""
        code = data.code.upper()
        if self.get_by_code(code) is not None:
            raise ValidationError(f"Currency {code} already exists")
        ledger = CurrencyLedger(code=code, name=data.name)
        self.db.add(ledger)
        self.db.commit()
        self.db.refresh(ledger)
        return ledger
