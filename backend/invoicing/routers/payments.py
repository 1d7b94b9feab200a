from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.core.errors import InvoicingError, status_code_for
from invoicing.core.idempotency import (
    IdempotencyResult,
    check_idempotency,
    record_idempotency_response,
)
from invoicing.models.payment import Payment
from invoicing.repositories.payment_allocation_repository import PaymentAllocationRepository
from invoicing.repositories.payment_repository import PaymentRepository
from invoicing.schemas.payment import (
    AllocationDraftResponse,
    AllocationPreviewResponse,
    AllocationRequest,
    PaymentCreate,
    PaymentDetailResponse,
    PaymentResponse,
)
from invoicing.schemas.payment_allocation import PaymentAllocationResponse
from invoicing.services.payment_service import PaymentService

router = APIRouter()


def _payment_detail(db: Session, payment: Payment) -> PaymentDetailResponse:
    allocations = PaymentAllocationRepository(db).get_by_payment_id(payment.id)  # type: ignore[arg-type]
    detail = PaymentDetailResponse.model_validate(payment)
    detail.allocations = [PaymentAllocationResponse.model_validate(a) for a in allocations]
    return detail


@router.get(
    "/",
    response_model=list[PaymentResponse],
    summary="List payments",
)
async def list_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    customer_id: UUID | None = None,
    currency: str | None = None,
    order_by: str | None = Query(default=None, description="Sort as field:direction"),
    db: Session = Depends(get_db),
) -> list[Payment]:
    """List payments with optional filters."""
    repo = PaymentRepository(db)
    return repo.get_all(
        skip=skip,
        limit=limit,
        customer_id=customer_id,
        currency=currency,
        order_by=order_by,
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentDetailResponse,
    summary="Get payment",
    responses={404: {"description": "Payment not found"}},
)
async def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> PaymentDetailResponse:
    """Get a payment together with its per-invoice allocation rows."""
    payment = PaymentRepository(db).get_by_id(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return _payment_detail(db, payment)


@router.post(
    "/preview",
    response_model=AllocationPreviewResponse,
    summary="Preview payment allocation",
    responses={
        400: {"description": "A selected invoice is not open for this customer"},
        404: {"description": "Customer, currency or invoice not found"},
    },
)
async def preview_payment_allocation(
    data: AllocationRequest,
    db: Session = Depends(get_db),
) -> AllocationPreviewResponse:
    """Compute the allocation a payment would produce without recording it.

    Validation problems are listed in ``errors`` instead of failing the request.
    """
    service = PaymentService(db)
    try:
        plan = service.preview_allocation(data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None

    result = plan.result
    return AllocationPreviewResponse(
        allocations=[
            AllocationDraftResponse(
                invoice_id=draft.invoice_id,
                invoice_no=draft.invoice_no,
                balance=draft.balance,
                allocated_amount=draft.allocated_amount,
                foreign_bank_charge=draft.foreign_bank_charge,
                local_bank_charge=draft.local_bank_charge,
                recieved_jpy=draft.recieved_jpy,
                exchange_rate=draft.exchange_rate,
            )
            for draft in result.allocations
        ],
        exchange_rate=result.exchange_rate,
        jpy_amount=plan.jpy_amount,
        total_allocated=result.total_allocated,
        total_received_jpy=result.total_received_jpy,
        charge_invoice_id=result.charge_invoice_id,
        errors=plan.errors,
    )


@router.post(
    "/",
    response_model=PaymentDetailResponse,
    status_code=201,
    summary="Record payment",
    responses={
        400: {"description": "Allocation failed validation"},
        404: {"description": "Customer, currency or invoice not found"},
        409: {"description": "Invoices or ledger were modified concurrently"},
    },
)
async def create_payment(
    data: PaymentCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> PaymentDetailResponse | JSONResponse:
    """Record a payment and apply it to the customer's open invoices.

    Send an ``Idempotency-Key`` header to make retries safe: a repeated key
    replays the first successful response.
    """
    idempotency = check_idempotency(request, db)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    service = PaymentService(db)
    try:
        payment = service.create_payment(data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None

    detail = _payment_detail(db, payment)
    if isinstance(idempotency, IdempotencyResult):
        record_idempotency_response(db, idempotency, 201, detail.model_dump(mode="json"))

    return detail


@router.delete(
    "/{payment_id}",
    status_code=204,
    summary="Delete payment",
    responses={
        404: {"description": "Payment not found"},
        409: {"description": "A newer payment exists or records were modified concurrently"},
    },
)
async def delete_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    """Reverse the customer's most recent payment and restore invoice balances."""
    service = PaymentService(db)
    try:
        service.delete_payment(payment_id)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None
