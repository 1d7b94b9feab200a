from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.core.errors import InvoicingError, status_code_for
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.payment_allocation import PaymentAllocation
from invoicing.repositories.customer_repository import CustomerRepository
from invoicing.repositories.invoice_repository import InvoiceRepository
from invoicing.repositories.invoice_settings_repository import InvoiceSettingsRepository
from invoicing.repositories.payment_allocation_repository import PaymentAllocationRepository
from invoicing.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from invoicing.schemas.payment_allocation import PaymentAllocationResponse
from invoicing.services.invoice_service import InvoiceService
from invoicing.services.pdf_service import PdfService

router = APIRouter()


@router.get(
    "/",
    response_model=list[InvoiceResponse],
    summary="List invoices",
)
async def list_invoices(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    customer_id: UUID | None = None,
    currency: str | None = None,
    status: InvoiceStatus | None = None,
    order_by: str | None = Query(default=None, description="Sort as field:direction"),
    db: Session = Depends(get_db),
) -> list[Invoice]:
    """List invoices with optional filters."""
    repo = InvoiceRepository(db)
    return repo.get_all(
        skip=skip,
        limit=limit,
        customer_id=customer_id,
        currency=currency,
        status=status,
        order_by=order_by,
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Invoice:
    """Get an invoice by ID."""
    repo = InvoiceRepository(db)
    invoice = repo.get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get(
    "/{invoice_id}/allocations",
    response_model=list[PaymentAllocationResponse],
    summary="List payments applied to an invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def list_invoice_allocations(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> list[PaymentAllocation]:
    if not InvoiceRepository(db).get_by_id(invoice_id):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return PaymentAllocationRepository(db).get_by_invoice_id(invoice_id)


@router.post(
    "/",
    response_model=InvoiceResponse,
    status_code=201,
    summary="Create invoice",
    responses={
        400: {"description": "Invalid items, duplicate number or missing exchange rate"},
        404: {"description": "Customer or currency not found"},
    },
)
async def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
) -> Invoice:
    """Price the items, store the invoice and add its total to the currency ledger."""
    service = InvoiceService(db)
    try:
        return service.create_invoice(data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None


@router.put(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update invoice",
    responses={
        400: {"description": "Invalid update"},
        404: {"description": "Invoice not found"},
        409: {"description": "Invoice is settled or was modified concurrently"},
    },
)
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
) -> Invoice:
    """Update an invoice.

    Paid and partially paid invoices only accept descriptive changes; their
    customer, currency and total stay fixed.
    """
    service = InvoiceService(db)
    try:
        return service.update_invoice(invoice_id, data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None


@router.post(
    "/{invoice_id}/finalize",
    response_model=InvoiceResponse,
    summary="Finalize invoice",
    responses={
        404: {"description": "Invoice not found"},
        409: {"description": "Invoice is not a draft"},
    },
)
async def finalize_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Invoice:
    """Move a draft invoice to pending so it can receive payments."""
    service = InvoiceService(db)
    try:
        return service.finalize_invoice(invoice_id)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None


@router.delete(
    "/{invoice_id}",
    status_code=204,
    summary="Delete invoice",
    responses={
        404: {"description": "Invoice not found"},
        409: {"description": "Invoice is paid or partially paid"},
    },
)
async def delete_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    """Delete an unpaid invoice and remove its total from the currency ledger."""
    service = InvoiceService(db)
    try:
        service.delete_invoice(invoice_id)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None


@router.get(
    "/{invoice_id}/pdf",
    summary="Download invoice PDF",
    responses={404: {"description": "Invoice not found"}},
)
async def download_invoice_pdf(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Response:
    """Render the invoice with the company's settings and return it as a PDF."""
    invoice = InvoiceRepository(db).get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")

    customer = CustomerRepository(db).get_by_id(invoice.customer_id)  # type: ignore[arg-type]
    invoice_settings = InvoiceSettingsRepository(db).get()

    pdf_service = PdfService()
    pdf_bytes = pdf_service.generate_invoice_pdf(
        invoice=invoice,
        customer=customer,
        invoice_settings=invoice_settings,
    )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice_{invoice.invoice_no}.pdf"'},
    )
