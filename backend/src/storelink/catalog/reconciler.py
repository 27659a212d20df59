"""Catalog reconciliation - merges a provider snapshot into the local catalog"""

import logging
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import ItemReconciliationError, ProviderUnreachable
from ..models.catalog_item import CatalogItem, ItemSource, DEFAULT_CATEGORY
from ..observability.metrics import (
    catalog_sync_items_total,
    catalog_sync_duration_seconds,
    catalog_sync_incomplete_total,
)
from ..providers.ports import ProviderError, RemoteCatalogItem
from .schemas import SyncSummary, ItemSyncError


logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# Numeric(12, 2) holds at most ten integer digits
MAX_PRICE = Decimal("9999999999.99")


def parse_price(value) -> Decimal:
    """Convert a provider price to a non-negative Decimal rounded to cents

    Raises:
        ItemReconciliationError: If the value is missing, not numeric, not
            finite, negative or too large
    """
    if value is None or isinstance(value, bool):
        raise ItemReconciliationError(f"Invalid price: {value!r}")

    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ItemReconciliationError(f"Invalid price: {value!r}")

    if not price.is_finite():
        raise ItemReconciliationError(f"Price must be finite, got {value!r}")
    if price < 0:
        raise ItemReconciliationError(f"Price must not be negative, got {value!r}")

    price = price.quantize(CENTS, rounding=ROUND_HALF_UP)
    if price > MAX_PRICE:
        raise ItemReconciliationError(f"Price out of range: {value!r}")
    return price


class CatalogReconciler:
    """Upserts remote catalog items for one seller, keyed by external_ref.

    Local external items missing from the snapshot are never touched, so an
    empty or partial snapshot cannot remove anything. Each item is committed
    on its own; a failing item is counted and the pass continues.

    Usage:
        reconciler = CatalogReconciler(db, seller.id, "SHOPIFY")
        summary = reconciler.reconcile(provider.fetch_catalog(credential))
    """

    def __init__(self, db: Session, seller_id: UUID, provider_type: str):
        self.db = db
        self.seller_id = seller_id
        self.provider_type = provider_type

    def _load_external_items(self) -> Dict[str, CatalogItem]:
        stmt = select(CatalogItem).where(
            CatalogItem.seller_id == self.seller_id,
            CatalogItem.source == ItemSource.EXTERNAL.value,
            CatalogItem.external_ref.is_not(None),
        )
        return {item.external_ref: item for item in self.db.execute(stmt).scalars().all()}

    def reconcile(self, remote_items: Iterable[RemoteCatalogItem]) -> SyncSummary:
        """Run one reconciliation pass

        Args:
            remote_items: Remote snapshot, typically a lazy paginated iterator

        Returns:
            SyncSummary with imported/updated/errored counts

        Raises:
            ProviderUnreachable: If the provider fails before yielding any item.
                A failure after that ends the pass with complete=False.
        """
        summary = SyncSummary(started_at=datetime.now(timezone.utc))
        start = time.time()
        existing = self._load_external_items()
        iterator = iter(remote_items)

        while True:
            try:
                remote = next(iterator)
            except StopIteration:
                break
            except Exception as e:
                # A raising generator is finished; nothing more can be fetched
                if summary.total_shopify_products == 0:
                    raise ProviderUnreachable(
                        f"Catalog fetch failed: {e}", provider_type=self.provider_type
                    ) from e
                summary.complete = False
                catalog_sync_incomplete_total.inc()
                logger.warning(
                    f"Catalog fetch stopped after {summary.total_shopify_products} items: {e}",
                    exc_info=not isinstance(e, ProviderError),
                    extra={"seller_id": str(self.seller_id), "provider_type": self.provider_type}
                )
                break

            summary.total_shopify_products += 1
            external_ref = self._external_ref(remote)

            try:
                created = self._upsert_item(remote, existing)
            except Exception as e:
                self.db.rollback()
                summary.errored += 1
                summary.errors.append(ItemSyncError(external_ref=external_ref, error=str(e)))
                catalog_sync_items_total.labels(outcome="errored").inc()
                logger.warning(
                    f"Catalog item {external_ref!r} not reconciled: {e}",
                    extra={"seller_id": str(self.seller_id), "provider_type": self.provider_type}
                )
                continue

            if created:
                summary.imported += 1
                catalog_sync_items_total.labels(outcome="imported").inc()
            else:
                summary.updated += 1
                catalog_sync_items_total.labels(outcome="updated").inc()

        summary.finished_at = datetime.now(timezone.utc)
        catalog_sync_duration_seconds.observe(time.time() - start)

        logger.info(
            "Catalog reconciliation finished",
            extra={
                "seller_id": str(self.seller_id),
                "provider_type": self.provider_type,
                "imported": summary.imported,
                "updated": summary.updated,
                "errored": summary.errored,
                "total": summary.total,
                "complete": summary.complete,
            }
        )
        return summary

    @staticmethod
    def _external_ref(remote: RemoteCatalogItem) -> Optional[str]:
        if remote.external_id is None:
            return None
        return str(remote.external_id).strip() or None

    def _upsert_item(self, remote: RemoteCatalogItem, existing: Dict[str, CatalogItem]) -> bool:
        """Validate and upsert a single remote item, committing it

        Returns:
            True if a new item was created, False if an existing one was updated

        Raises:
            ItemReconciliationError: If validation fails
        """
        external_ref = self._external_ref(remote)
        if not external_ref:
            raise ItemReconciliationError("external id is required")

        name = str(remote.name).strip() if remote.name is not None else ""
        if not name:
            raise ItemReconciliationError("name is required", external_ref=external_ref)

        price = parse_price(remote.price)
        image_urls: List[str] = [str(url) for url in (remote.image_urls or []) if url]
        category = remote.category.strip() if isinstance(remote.category, str) and remote.category.strip() else None

        item = existing.get(external_ref)
        if item is not None:
            item.name = name
            item.price = price
            item.description = remote.description
            item.image_urls = image_urls
            item.is_available = bool(remote.available)
            item.external_provider = self.provider_type
            if category:
                item.category = category
            self.db.commit()
            return False

        item = CatalogItem(
            seller_id=self.seller_id,
            name=name,
            description=remote.description,
            price=price,
            category=category or DEFAULT_CATEGORY,
            image_urls=image_urls,
            is_available=bool(remote.available),
            source=ItemSource.EXTERNAL.value,
            external_ref=external_ref,
            external_provider=self.provider_type,
        )
        self.db.add(item)
        self.db.commit()
        existing[external_ref] = item
        return True
