from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.core.errors import InvoicingError, status_code_for
from invoicing.models.customer import Customer
from invoicing.repositories.customer_repository import CustomerRepository
from invoicing.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate

router = APIRouter()


@router.get(
    "/",
    response_model=list[CustomerResponse],
    summary="List customers",
)
async def list_customers(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None, description="Sort as field:direction"),
    db: Session = Depends(get_db),
) -> list[Customer]:
    """List customers with pagination."""
    repo = CustomerRepository(db)
    return repo.get_all(skip=skip, limit=limit, order_by=order_by)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer",
    responses={404: {"description": "Customer not found"}},
)
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> Customer:
    """Get a customer by ID."""
    repo = CustomerRepository(db)
    customer = repo.get_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=201,
    summary="Create customer",
    responses={422: {"description": "Invalid customer data"}},
)
async def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
) -> Customer:
    """Create a new customer."""
    repo = CustomerRepository(db)
    return repo.create(data)


@router.put(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update customer",
    responses={
        404: {"description": "Customer not found"},
        422: {"description": "Invalid customer data"},
    },
)
async def update_customer(
    customer_id: UUID,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
) -> Customer:
    """Update a customer."""
    repo = CustomerRepository(db)
    customer = repo.update(customer_id, data)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.delete(
    "/{customer_id}",
    status_code=204,
    summary="Delete customer",
    responses={
        404: {"description": "Customer not found"},
        409: {"description": "Customer has invoices or payments"},
    },
)
async def delete_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    """Delete a customer with no invoices or payments."""
    repo = CustomerRepository(db)
    try:
        deleted = repo.delete(customer_id)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None
    if not deleted:
        raise HTTPException(status_code=404, detail="Customer not found")
