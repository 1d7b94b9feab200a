from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from invoicing.core.errors import ValidationError
from invoicing.models.catalog_item import CatalogItem
from invoicing.schemas.catalog_item import CatalogItemCreate, CatalogItemUpdate


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


class CatalogItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        active_only: bool = False,
        search: str | None = None,
    ) -> list[CatalogItem]:
        query = self.db.query(CatalogItem)
        if active_only:
            query = query.filter(CatalogItem.is_active.is_(True))
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                func.lower(CatalogItem.item_name).like(pattern)
                | func.lower(CatalogItem.part_no).like(pattern)
                | func.lower(CatalogItem.item_code).like(pattern)
            )
        return query.order_by(CatalogItem.item_name.asc()).offset(skip).limit(limit).all()

    def get_by_id(self, item_id: UUID) -> CatalogItem | None:
        return self.db.query(CatalogItem).filter(CatalogItem.id == item_id).first()

    def find_duplicate(
        self,
        item_name: str | None,
        part_no: str | None,
        item_code: str | None,
        exclude_id: UUID | None = None,
    ) -> CatalogItem | None:
        """Find an item whose name, part number and item code all match after normalizing."""
        key = (_normalize(item_name), _normalize(part_no), _normalize(item_code))
        query = self.db.query(CatalogItem).filter(
            func.lower(func.trim(CatalogItem.item_name)) == key[0]
        )
        if exclude_id is not None:
            query = query.filter(CatalogItem.id != exclude_id)
        for candidate in query.all():
            candidate_key = (
                _normalize(str(candidate.part_no or "")),
                _normalize(str(candidate.item_code or "")),
            )
            if candidate_key == key[1:]:
                return candidate
        return None

    def create(self, data: CatalogItemCreate) -> CatalogItem:
        if self.find_duplicate(data.item_name, data.part_no, data.item_code):
            raise ValidationError(
                "A catalog item with the same name, part number and item code already exists"
            )
        item = CatalogItem(**data.model_dump())
        item.item_name = data.item_name.strip()  # type: ignore[assignment]
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update(self, item_id: UUID, data: CatalogItemUpdate) -> CatalogItem | None:
        item = self.get_by_id(item_id)
        if not item:
            return None
        update_data = data.model_dump(exclude_unset=True)
        merged = {
            "item_name": update_data.get("item_name", item.item_name),
            "part_no": update_data.get("part_no", item.part_no),
            "item_code": update_data.get("item_code", item.item_code),
        }
        if self.find_duplicate(**merged, exclude_id=item_id):
            raise ValidationError(
                "A catalog item with the same name, part number and item code already exists"
            )
        for key, value in update_data.items():
            setattr(item, key, value)
        self.db.commit()
        self.db.refresh(item)
        return item

    def set_active(self, item_id: UUID, is_active: bool) -> CatalogItem | None:
        item = self.get_by_id(item_id)
        if not item:
            return None
        item.is_active = is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete(self, item_id: UUID) -> bool:
        item = self.get_by_id(item_id)
        if not item:
            return False
        self.db.delete(item)
        self.db.commit()
        return True
