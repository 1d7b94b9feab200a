from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.models.invoice_settings import InvoiceSettings
from invoicing.repositories.invoice_settings_repository import InvoiceSettingsRepository
from invoicing.schemas.invoice_settings import InvoiceSettingsResponse, InvoiceSettingsUpdate

router = APIRouter()


@router.get(
    "/",
    response_model=InvoiceSettingsResponse,
    summary="Get invoice settings",
)
async def get_invoice_settings(db: Session = Depends(get_db)) -> InvoiceSettings:
    """Company details, bank accounts and signature printed on invoices."""
    return InvoiceSettingsRepository(db).get_or_create()


@router.put(
    "/",
    response_model=InvoiceSettingsResponse,
    summary="Update invoice settings",
    responses={422: {"description": "Invalid settings"}},
)
async def update_invoice_settings(
    data: InvoiceSettingsUpdate,
    db: Session = Depends(get_db),
) -> InvoiceSettings:
    """Update invoice settings.

    Existing invoices keep the bank account snapshot taken when they were saved.
    """
    return InvoiceSettingsRepository(db).upsert(data)
