"""Celery application for StoreLink background work.

Run a worker with:
    celery -A storelink.workers.celery_app worker --beat
"""

import logging

from celery import Celery
from celery.signals import worker_init

from ..config import settings
from ..observability.logging_config import configure_logging
from ..providers.registry_init import initialize_providers

logger = logging.getLogger(__name__)

celery_app = Celery(
    "storelink",
    broker=settings.CELERY_BROKER_URL,
    include=["storelink.workers.sync_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)

celery_app.conf.beat_schedule = {
    "catalog-sync": {
        "task": "integrations.sync_all_catalogs",
        "schedule": settings.CATALOG_SYNC_INTERVAL_MINUTES * 60,
        "options": {
            "expires": settings.CATALOG_SYNC_INTERVAL_MINUTES * 60,
        },
    },
}


@worker_init.connect
def setup_worker(**kwargs):
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    if settings.OPERATION_GUARD_BACKEND.lower() == "memory":
        logger.error(
            "OPERATION_GUARD_BACKEND=memory does not guard syncs across processes; "
            "use redis when a worker runs next to the API"
        )
    initialize_providers()
    logger.info("StoreLink worker initialized")
