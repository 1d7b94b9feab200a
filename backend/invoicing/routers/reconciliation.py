from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.schemas.reconciliation import ReconciliationReport
from invoicing.services.reconciliation_service import ReconciliationService

router = APIRouter()


@router.get(
    "/",
    response_model=ReconciliationReport,
    summary="Run reconciliation check",
)
async def run_reconciliation(
    include_ledgers: bool = Query(default=True),
    db: Session = Depends(get_db),
) -> ReconciliationReport:
    """Compare stored payment, invoice and ledger totals with their allocation rows.

    Read-only; nothing is corrected.
    """
    return ReconciliationService(db).run(include_ledgers=include_ledgers)
