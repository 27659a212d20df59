"""Seller catalog API endpoints"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_seller
from ..models.catalog_item import ItemSource
from ..models.seller import Seller
from .schemas import CatalogItemCreate, CatalogItemUpdate, CatalogItemResponse
from .service import CatalogItemService

router = APIRouter(prefix="/sellers/{seller_id}/products", tags=["products"])


@router.get("", response_model=List[CatalogItemResponse])
def list_products(
    source: Optional[ItemSource] = Query(None, description="Filter by item source"),
    available: Optional[bool] = Query(None, description="Filter by availability"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    """List the seller's catalog, native and imported items alike."""
    items = CatalogItemService(db, seller.id).list_items(
        source=source, available=available, limit=limit, offset=offset
    )
    return [CatalogItemResponse.model_validate(item) for item in items]


@router.post("", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    item_data: CatalogItemCreate,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    item = CatalogItemService(db, seller.id).create_native(item_data)
    return CatalogItemResponse.model_validate(item)


@router.patch("/{item_id}", response_model=CatalogItemResponse)
def update_product(
    item_id: UUID,
    item_data: CatalogItemUpdate,
    db: Session = Depends(get_db),
    seller: Seller = Depends(get_seller),
):
    """
    Edit a native item.

    Raises:
        404: Item not found for this seller
        409: Item is managed by a catalog provider
    """
    item = CatalogItemService(db, seller.id).update_native(item_id, item_data)
    return CatalogItemResponse.model_validate(item)
