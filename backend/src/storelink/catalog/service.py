"""Catalog item service - seller-facing reads and native item edits"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import CatalogItemNotFound, ManagedItemError
from ..models.catalog_item import CatalogItem, ItemSource
from .schemas import CatalogItemCreate, CatalogItemUpdate


logger = logging.getLogger(__name__)


class CatalogItemService:
    """Read and edit a seller's catalog.

    Items imported from a provider are read-only here; only the reconciler
    and disconnect change them.
    """

    def __init__(self, db: Session, seller_id: UUID):
        self.db = db
        self.seller_id = seller_id

    def list_items(
        self,
        source: Optional[ItemSource] = None,
        available: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[CatalogItem]:
        query = select(CatalogItem).where(CatalogItem.seller_id == self.seller_id)

        if source is not None:
            query = query.where(CatalogItem.source == ItemSource(source).value)
        if available is not None:
            query = query.where(CatalogItem.is_available == available)

        query = query.order_by(CatalogItem.name, CatalogItem.id).limit(limit).offset(offset)
        return list(self.db.execute(query).scalars().all())

    def get_item(self, item_id: UUID) -> CatalogItem:
        item = self.db.execute(
            select(CatalogItem).where(
                CatalogItem.id == item_id,
                CatalogItem.seller_id == self.seller_id,
            )
        ).scalar_one_or_none()
        if item is None:
            raise CatalogItemNotFound(f"Catalog item {item_id} not found")
        return item

    def create_native(self, data: CatalogItemCreate) -> CatalogItem:
        item = CatalogItem(
            seller_id=self.seller_id,
            name=data.name,
            description=data.description,
            price=data.price,
            category=data.category,
            image_urls=list(data.image_urls),
            is_available=data.is_available,
            source=ItemSource.NATIVE.value,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)

        logger.info(
            f"Native catalog item created: {item.id}",
            extra={"seller_id": str(self.seller_id)}
        )
        return item

    def update_native(self, item_id: UUID, data: CatalogItemUpdate) -> CatalogItem:
        """Apply a manual edit

        Raises:
            CatalogItemNotFound: If the item does not belong to the seller
            ManagedItemError: If the item is owned by a catalog provider
        """
        item = self.get_item(item_id)
        if item.is_external or item.external_ref is not None:
            raise ManagedItemError(
                f"Catalog item {item_id} is managed by {item.external_provider or 'an external provider'} "
                "and cannot be edited manually"
            )

        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("name", "price", "category", "image_urls", "is_available") and value is None:
                continue
            setattr(item, field, value)

        self.db.commit()
        self.db.refresh(item)
        return item
