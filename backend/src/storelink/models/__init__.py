"""SQLAlchemy Models for StoreLink"""

from .base import Base, PortableJSONB, TimestampMixin
from .seller import Seller
from .provider_credential import ProviderCredential, ProviderKind, ActivationState
from .catalog_item import CatalogItem, ItemSource, DEFAULT_CATEGORY

__all__ = [
    "Base",
    "PortableJSONB",
    "TimestampMixin",
    "Seller",
    "ProviderCredential",
    "ProviderKind",
    "ActivationState",
    "CatalogItem",
    "ItemSource",
    "DEFAULT_CATEGORY",
]
