"""Disconnect Coordinator - tears a provider connection down without data loss.

Imported catalog items are marked unavailable, never deleted, so orders that
reference them stay resolvable. Disconnect always ends in Disconnected.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..credentials.store import CredentialStore
from ..models.base import utcnow
from ..models.catalog_item import CatalogItem, ItemSource
from ..models.provider_credential import ProviderKind
from ..observability.metrics import disconnect_demotion_failures_total


logger = logging.getLogger(__name__)


class DisconnectCoordinator:
    """Demote imported items and clear the credential for one pair.

    Usage:
        DisconnectCoordinator(db).disconnect(seller.id, ProviderKind.CATALOG)
    """

    def __init__(self, db: Session, store: Optional[CredentialStore] = None):
        self.db = db
        self.store = store or CredentialStore(db)

    def disconnect(self, seller_id: UUID, provider_kind: ProviderKind) -> None:
        """Run the teardown. Never raises for storage failures."""
        provider_kind = ProviderKind(provider_kind)

        if provider_kind == ProviderKind.CATALOG:
            self.demote_external_items(seller_id)

        self._clear_credential(seller_id, provider_kind)

    def demote_external_items(self, seller_id: UUID) -> Optional[int]:
        """Set is_available=False on every imported item of the seller.

        Returns:
            Number of rows updated, or None if the update failed
        """
        try:
            result = self.db.execute(
                update(CatalogItem)
                .where(
                    CatalogItem.seller_id == seller_id,
                    CatalogItem.source == ItemSource.EXTERNAL.value,
                )
                .values(is_available=False, updated_at=utcnow())
                .execution_options(synchronize_session="fetch")
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            disconnect_demotion_failures_total.inc()
            logger.error(
                f"Failed to mark imported items unavailable: {e}",
                exc_info=True,
                extra={"seller_id": str(seller_id), "provider_kind": ProviderKind.CATALOG.value}
            )
            return None

        demoted = result.rowcount or 0
        logger.info(
            f"Marked {demoted} imported items unavailable",
            extra={"seller_id": str(seller_id), "provider_kind": ProviderKind.CATALOG.value}
        )
        return demoted

    def _clear_credential(self, seller_id: UUID, provider_kind: ProviderKind) -> None:
        for attempt in (1, 2):
            try:
                self.store.clear(seller_id, provider_kind)
                return
            except Exception as e:
                # store.clear rolled back; the retry runs in a new transaction
                logger.error(
                    f"Failed to clear credential (attempt {attempt}): {e}",
                    exc_info=True,
                    extra={"seller_id": str(seller_id), "provider_kind": provider_kind.value}
                )
