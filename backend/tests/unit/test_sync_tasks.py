"""Unit tests for scheduled catalog sync tasks"""

from unittest.mock import call, patch
from uuid import uuid4

import pytest

from storelink.models import ProviderKind
from storelink.workers import sync_tasks
from storelink.workers.sync_tasks import sync_all_catalogs_task, sync_catalog_task


PRODUCTS = [
    {"external_id": "a", "name": "A", "price": 10},
    {"external_id": "b", "name": "B", "price": 20},
]


@pytest.fixture
def task_session(db_session):
    """Route the tasks' SessionLocal to the test session."""
    with patch.object(sync_tasks, "SessionLocal", return_value=db_session):
        yield db_session


class TestSyncCatalogTask:
    """Test the single-seller sync task"""

    def test_completed_sync_returns_summary(self, task_session, service, seller, catalog_input):
        seller_id = str(seller.id)
        service.connect(seller.id, ProviderKind.CATALOG, catalog_input(PRODUCTS))

        result = sync_catalog_task(seller_id)

        assert result["status"] == "completed"
        assert result["seller_id"] == seller_id
        assert (result["imported"], result["updated"], result["errored"]) == (0, 2, 0)
        assert result["complete"] is True

    def test_not_connected_is_skipped(self, task_session, seller):
        seller_id = str(seller.id)

        result = sync_catalog_task(seller_id)

        assert result == {"status": "skipped", "seller_id": seller_id, "reason": "NotConnected"}

    def test_unreachable_provider_reported_as_failed(self, task_session, service, seller, catalog_input):
        seller_id = str(seller.id)
        service.connect(seller.id, ProviderKind.CATALOG, catalog_input(PRODUCTS))
        credential = service.store.get(seller.id, ProviderKind.CATALOG)
        credential.options["fail_after"] = 0
        service.store.put(seller.id, ProviderKind.CATALOG, credential)

        result = sync_catalog_task(seller_id)

        assert result["status"] == "failed"
        assert "page failure" in result["error"]

    def test_unknown_seller_raises(self, task_session):
        with pytest.raises(ValueError, match="does not exist"):
            sync_catalog_task(str(uuid4()))

    def test_malformed_seller_id_raises(self, task_session):
        with pytest.raises(ValueError, match="Invalid seller_id"):
            sync_catalog_task("not-a-uuid")


class TestSyncAllCatalogsTask:
    """Test the fan-out task"""

    def test_enqueues_connected_sellers_only(
        self, task_session, service, seller, other_seller, catalog_input, messaging_input
    ):
        seller_id = str(seller.id)
        service.connect(seller.id, ProviderKind.CATALOG, catalog_input(PRODUCTS))
        service.connect(other_seller.id, ProviderKind.MESSAGING, messaging_input())

        with patch.object(sync_catalog_task, "delay") as delay:
            result = sync_all_catalogs_task()

        assert result == {"status": "enqueued", "count": 1}
        assert delay.call_args_list == [call(seller_id, "catalog")]
