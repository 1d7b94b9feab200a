from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from invoicing.core.database import get_db
from invoicing.core.errors import InvoicingError, status_code_for
from invoicing.models.catalog_item import CatalogItem
from invoicing.repositories.catalog_item_repository import CatalogItemRepository
from invoicing.schemas.catalog_item import (
    CatalogItemCreate,
    CatalogItemResponse,
    CatalogItemUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[CatalogItemResponse],
    summary="List catalog items",
)
async def list_catalog_items(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    active_only: bool = Query(default=False),
    search: str | None = Query(default=None, description="Match name, part number or item code"),
    db: Session = Depends(get_db),
) -> list[CatalogItem]:
    repo = CatalogItemRepository(db)
    return repo.get_all(skip=skip, limit=limit, active_only=active_only, search=search)


@router.get(
    "/{item_id}",
    response_model=CatalogItemResponse,
    summary="Get catalog item",
    responses={404: {"description": "Catalog item not found"}},
)
async def get_catalog_item(
    item_id: UUID,
    db: Session = Depends(get_db),
) -> CatalogItem:
    item = CatalogItemRepository(db).get_by_id(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Catalog item not found")
    return item


@router.post(
    "/",
    response_model=CatalogItemResponse,
    status_code=201,
    summary="Create catalog item",
    responses={400: {"description": "Duplicate catalog item"}},
)
async def create_catalog_item(
    data: CatalogItemCreate,
    db: Session = Depends(get_db),
) -> CatalogItem:
    """Create a catalog item.

    Name, part number and item code together must be unique, ignoring case
    and surrounding whitespace.
    """
    try:
        return CatalogItemRepository(db).create(data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None


@router.put(
    "/{item_id}",
    response_model=CatalogItemResponse,
    summary="Update catalog item",
    responses={
        400: {"description": "Duplicate catalog item"},
        404: {"description": "Catalog item not found"},
    },
)
async def update_catalog_item(
    item_id: UUID,
    data: CatalogItemUpdate,
    db: Session = Depends(get_db),
) -> CatalogItem:
    try:
        item = CatalogItemRepository(db).update(item_id, data)
    except InvoicingError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e)) from None
    if not item:
        raise HTTPException(status_code=404, detail="Catalog item not found")
    return item


@router.post(
    "/{item_id}/activate",
    response_model=CatalogItemResponse,
    summary="Activate catalog item",
    responses={404: {"description": "Catalog item not found"}},
)
async def activate_catalog_item(
    item_id: UUID,
    db: Session = Depends(get_db),
) -> CatalogItem:
    item = CatalogItemRepository(db).set_active(item_id, True)
    if not item:
        raise HTTPException(status_code=404, detail="Catalog item not found")
    return item


@router.post(
    "/{item_id}/deactivate",
    response_model=CatalogItemResponse,
    summary="Deactivate catalog item",
    responses={404: {"description": "Catalog item not found"}},
)
async def deactivate_catalog_item(
    item_id: UUID,
    db: Session = Depends(get_db),
) -> CatalogItem:
    """Hide a catalog item from item pickers without affecting existing invoices."""
    item = CatalogItemRepository(db).set_active(item_id, False)
    if not item:
        raise HTTPException(status_code=404, detail="Catalog item not found")
    return item


@router.delete(
    "/{item_id}",
    status_code=204,
    summary="Delete catalog item",
    responses={404: {"description": "Catalog item not found"}},
)
async def delete_catalog_item(
    item_id: UUID,
    db: Session = Depends(get_db),
) -> None:
    if not CatalogItemRepository(db).delete(item_id):
        raise HTTPException(status_code=404, detail="Catalog item not found")
