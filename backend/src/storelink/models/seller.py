"""Seller model - Root entity for multi-tenant isolation"""

import uuid

from sqlalchemy import Column, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import validates, relationship

from .base import Base, TimestampMixin


class Seller(TimestampMixin, Base):
    """
    Seller model - tenant root of the integration engine.

    Every provider credential and catalog item references seller.id. A seller
    holds at most one credential per provider kind (messaging, catalog).
    """
    __tablename__ = "seller"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)

    # Relationships
    credentials = relationship("ProviderCredential", back_populates="seller")
    catalog_items = relationship("CatalogItem", back_populates="seller")

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Seller name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<Seller(id={self.id}, name={self.name!r})>"
