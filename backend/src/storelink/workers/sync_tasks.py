"""Celery tasks for scheduled catalog synchronization.

Tasks:
- integrations.sync_catalog: one reconciliation pass for one seller
- integrations.sync_all_catalogs: fan-out over every connected catalog provider

Example Celery Beat schedule configuration:
    celery_app.conf.beat_schedule = {
        'catalog-sync': {
            'task': 'integrations.sync_all_catalogs',
            'schedule': settings.CATALOG_SYNC_INTERVAL_MINUTES * 60,
        },
    }
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from ..connections.service import ConnectionService
from ..credentials.store import CredentialStore
from ..database import SessionLocal
from ..errors import NotConnected, ProviderUnreachable, SyncInProgress
from ..models.provider_credential import ProviderKind
from ..observability.request_id import request_id_scope
from .base import validate_seller_id

logger = logging.getLogger(__name__)


def _task_correlation_id(task) -> Optional[str]:
    task_id = task.request.id
    return f"task-{task_id}" if task_id else None


@shared_task(name="integrations.sync_catalog", bind=True)
def sync_catalog_task(self, seller_id: str, provider_kind: str = ProviderKind.CATALOG.value) -> Dict[str, Any]:
    """Run one catalog reconciliation pass for a seller.

    A pass already running or a provider disconnected in the meantime is
    reported as skipped. Provider failures are reported, not raised, so the
    next scheduled run simply tries again.

    Returns:
        Dict with status ('completed' | 'skipped' | 'failed') and, when
        completed, the SyncSummary fields
    """
    with request_id_scope(_task_correlation_id(self)):
        db = SessionLocal()
        try:
            seller_uuid = validate_seller_id(seller_id, db)
            summary = ConnectionService(db).sync(seller_uuid, ProviderKind(provider_kind))

            result = {"status": "completed", "seller_id": seller_id}
            result.update(summary.model_dump(mode="json"))
            logger.info(
                "Catalog sync completed",
                extra={
                    "seller_id": seller_id,
                    "provider_kind": provider_kind,
                    "imported": summary.imported,
                    "updated": summary.updated,
                    "errored": summary.errored,
                    "total": summary.total,
                    "complete": summary.complete,
                }
            )
            return result

        except (SyncInProgress, NotConnected) as e:
            logger.info(
                f"Catalog sync skipped: {e}",
                extra={"seller_id": seller_id, "provider_kind": provider_kind}
            )
            return {"status": "skipped", "seller_id": seller_id, "reason": type(e).__name__}

        except ProviderUnreachable as e:
            logger.warning(
                f"Catalog sync failed: {e}",
                extra={"seller_id": seller_id, "provider_kind": provider_kind, "error": str(e)}
            )
            return {"status": "failed", "seller_id": seller_id, "error": str(e)}

        finally:
            db.close()


@shared_task(name="integrations.sync_all_catalogs", bind=True)
def sync_all_catalogs_task(self) -> Dict[str, Any]:
    """Enqueue a sync for every seller with a connected catalog provider."""
    with request_id_scope(_task_correlation_id(self)):
        db = SessionLocal()
        try:
            seller_ids = CredentialStore(db).list_connected(ProviderKind.CATALOG)
        finally:
            db.close()

        for seller_id in seller_ids:
            sync_catalog_task.delay(str(seller_id), ProviderKind.CATALOG.value)

        logger.info(f"Enqueued catalog sync for {len(seller_ids)} sellers")
        return {"status": "enqueued", "count": len(seller_ids)}
