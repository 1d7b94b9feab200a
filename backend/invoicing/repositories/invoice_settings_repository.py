from sqlalchemy.orm import Session

from invoicing.models.invoice_settings import InvoiceSettings
from invoicing.schemas.invoice_settings import InvoiceSettingsUpdate


class InvoiceSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self) -> InvoiceSettings | None:
        return self.db.query(InvoiceSettings).first()

    def get_or_create(self) -> InvoiceSettings:
        settings = self.get()
        if settings is None:
            settings = InvoiceSettings(company_name="", company_address="", bank_accounts=[])
            self.db.add(settings)
            self.db.commit()
            self.db.refresh(settings)
        return settings

    def upsert(self, data: InvoiceSettingsUpdate) -> InvoiceSettings:
        settings = self.get_or_create()
        update_data = data.model_dump(exclude_unset=True, mode="json")
        for key, value in update_data.items():
            if value is None and key in ("company_name", "company_address", "bank_accounts"):
                continue
            setattr(settings, key, value)
        self.db.commit()
        self.db.refresh(settings)
        return settings

    def find_bank_account(self, bank_account_id: str | None) -> dict | None:
        """Return a copy of the configured bank account with this id, if any."""
        if not bank_account_id:
            return None
        settings = self.get()
        if settings is None:
            return None
        for account in settings.bank_accounts or []:
            if account.get("id") == bank_account_id:
                return dict(account)
        return None
