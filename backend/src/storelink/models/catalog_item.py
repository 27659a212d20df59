"""CatalogItem SQLAlchemy model"""

import uuid
from enum import Enum

from sqlalchemy import Column, Text, ForeignKey, Boolean, Numeric, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, TimestampMixin


class ItemSource(str, Enum):
    """Origin of a catalog item.

    NATIVE: created and edited by the seller
    EXTERNAL: imported from a catalog provider, owned by the reconciler
    """
    NATIVE = "native"
    EXTERNAL = "external"


DEFAULT_CATEGORY = "Other"


class CatalogItem(TimestampMixin, Base):
    """Local product of a seller.

    Items with source='external' carry the provider's external_ref and are only
    mutated by catalog reconciliation and disconnect. They are never deleted by
    the engine so orders referencing them stay resolvable.
    """
    __tablename__ = "catalog_item"
    __table_args__ = (
        Index("ix_catalog_item_seller_source", "seller_id", "source"),
        Index("uq_catalog_item_seller_external_ref", "seller_id", "external_ref", unique=True),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seller_id = Column(UUID(as_uuid=True), ForeignKey("seller.id", ondelete="RESTRICT"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(precision=12, scale=2), nullable=False, default=0)
    category = Column(Text, nullable=False, default=DEFAULT_CATEGORY)
    image_urls = Column(PortableJSONB, nullable=False, default=list)
    is_available = Column(Boolean, nullable=False, default=True)
    source = Column(Text, nullable=False, default=ItemSource.NATIVE.value)
    external_ref = Column(Text, nullable=True)
    external_provider = Column(Text, nullable=True)

    # Relationships
    seller = relationship("Seller", back_populates="catalog_items")

    @property
    def is_external(self) -> bool:
        return self.source == ItemSource.EXTERNAL.value

    def to_dict(self):
        """Convert catalog item to dictionary representation"""
        return {
            "id": str(self.id),
            "seller_id": str(self.seller_id),
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "category": self.category,
            "image_urls": list(self.image_urls or []),
            "is_available": self.is_available,
            "source": self.source,
            "external_ref": self.external_ref,
            "external_provider": self.external_provider,
        }
