"""Pydantic schemas for the catalog domain (items, sync summaries)"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.catalog_item import DEFAULT_CATEGORY, ItemSource


class ItemSyncError(BaseModel):
    """One remote item that could not be reconciled"""
    external_ref: Optional[str] = None
    error: str


class SyncSummary(BaseModel):
    """Outcome of one reconciliation pass.

    total_shopify_products counts every remote item retrieved in the pass,
    whatever the provider. complete is False when the remote fetch broke off
    after at least one item.
    """
    imported: int = 0
    updated: int = 0
    errored: int = 0
    total_shopify_products: int = 0
    complete: bool = True
    errors: List[ItemSyncError] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return self.total_shopify_products

    @property
    def all_failed(self) -> bool:
        """True when a non-empty snapshot produced no successful item."""
        return self.total_shopify_products > 0 and self.errored == self.total_shopify_products


class CatalogItemBase(BaseModel):
    """Base schema for CatalogItem"""
    name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category: str = Field(DEFAULT_CATEGORY, min_length=1, max_length=100)
    image_urls: List[str] = Field(default_factory=list)
    is_available: bool = True

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class CatalogItemCreate(CatalogItemBase):
    """Schema for creating a native CatalogItem"""
    pass


class CatalogItemUpdate(BaseModel):
    """Schema for editing a native CatalogItem"""
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    image_urls: Optional[List[str]] = None
    is_available: Optional[bool] = None


class CatalogItemResponse(CatalogItemBase):
    """Schema for CatalogItem response"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    seller_id: UUID
    source: ItemSource
    external_ref: Optional[str] = None
    external_provider: Optional[str] = None
    created_at: datetime
    updated_at: datetime
