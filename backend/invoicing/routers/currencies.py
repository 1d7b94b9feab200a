from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.core.errors import InvoicingError, status_code_for
from invoicing.models.currency import CurrencyLedger
from invoicing.repositories.currency_repository import CurrencyRepository
from invoicing.schemas.currency import CurrencyCreate, CurrencyResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[CurrencyResponse],
    summary="List currency ledgers",
)
async def list_currencies(db: Session = Depends(get_db)) -> list[CurrencyLedger]:
    """List the running totals kept per currency."""
    return CurrencyRepository(db).get_all()


@router.get(
    "/{code}",
    response_model=CurrencyResponse,
    summary="Get currency ledger",
    responses={404: {"description": "Currency not found"}},
)
async def get_currency(code: str, db: Session = Depends(get_db)) -> CurrencyLedger:
    ledger = CurrencyRepository(db).get_by_code(code)
    if not ledger:
        raise HTTPException(status_code=404, detail="Currency not found")
    return ledger


@router.post(
    "/",
    response_model=CurrencyResponse,
    status_code=201,
    summary="Add currency",
    responses={400: {"description": "Currency already exists"}},
)
async def create_currency(
    data: CurrencyCreate,
    db: Session = Depends(get_db),
) -> CurrencyLedger:
    """Add a currency with zeroed running totals."""
    try:
        return CurrencyRepository(db).create(data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None
