"""Catalog domain: local items and reconciliation with provider catalogs"""

from .reconciler import CatalogReconciler, parse_price
from .schemas import SyncSummary, ItemSyncError
from .service import CatalogItemService

__all__ = [
    "CatalogReconciler",
    "CatalogItemService",
    "SyncSummary",
    "ItemSyncError",
    "parse_price",
]
