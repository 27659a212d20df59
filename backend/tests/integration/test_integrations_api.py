"""Integration tests for the provider connection API

Tests the complete connection workflow over HTTP:
- Catalog connect with initial import, sync and disconnect
- Messaging connect with out-of-band activation
- Error mapping (404, 409, 422, 502)
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from storelink.models import CatalogItem


PRODUCTS = [
    {"external_id": "a", "name": "Shirt", "price": "10.00"},
    {"external_id": "b", "name": "Hat", "price": "20.00"},
]


def catalog_body(products=None, **options):
    return {
        "provider_type": "mock_catalog",
        "origin": "mock-store.example",
        "access_token": "mock-token",
        "options": {"products": PRODUCTS if products is None else products, **options},
    }


def messaging_body(provider_type="MOCK_MESSAGING", **options):
    return {
        "provider_type": provider_type,
        "account_id": "15550001111",
        "access_token": "mock-token",
        "options": options,
    }


class TestCatalogConnectionAPI:
    """Integration tests for /api/v1/sellers/{seller_id}/integrations/catalog"""

    @pytest.fixture
    def base_url(self, seller):
        return f"/api/v1/sellers/{seller.id}/integrations/catalog"

    def test_initial_state_disconnected(self, client: TestClient, base_url):
        response = client.get(base_url)

        assert response.status_code == 200
        assert response.json()["state"] == "disconnected"

    def test_connect_imports_catalog(self, client: TestClient, base_url, db_session: Session):
        response = client.post(f"{base_url}/connect", json=catalog_body())

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "connected"
        assert data["activation_token"] is None
        assert data["sync_summary"]["imported"] == 2
        assert data["sync_summary"]["total_shopify_products"] == 2
        assert data["status"]["provider_type"] == "MOCK_CATALOG"
        assert data["status"]["metadata"] == {"shop_name": "Mock Store"}
        assert "mock-token" not in response.text

        assert len(db_session.execute(select(CatalogItem)).scalars().all()) == 2

    def test_sync_then_disconnect(self, client: TestClient, base_url, seller):
        client.post(f"{base_url}/connect", json=catalog_body())

        sync = client.post(f"{base_url}/sync")
        assert sync.status_code == 200
        assert (sync.json()["imported"], sync.json()["updated"]) == (0, 2)

        disconnect = client.post(f"{base_url}/disconnect")
        assert disconnect.status_code == 200
        assert disconnect.json()["state"] == "disconnected"

        products = client.get(f"/api/v1/sellers/{seller.id}/products").json()
        assert len(products) == 2
        assert not any(product["is_available"] for product in products)

    def test_status_reports_last_sync(self, client: TestClient, base_url):
        client.post(f"{base_url}/connect", json=catalog_body())

        data = client.get(base_url).json()

        assert data["state"] == "connected"
        assert data["last_synced_at"] is not None
        assert data["summary"]["imported"] == 2

    def test_unreachable_provider_returns_502(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/connect", json=catalog_body(mode="failure"))

        assert response.status_code == 502
        assert response.json()["error"] == "provider_unreachable"
        assert client.get(base_url).json()["state"] == "disconnected"

    def test_all_items_failing_returns_502_with_summary(self, client: TestClient, base_url):
        body = catalog_body(products=[{"external_id": "a", "name": "Bad", "price": "abc"}])

        response = client.post(f"{base_url}/connect", json=body)

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "initial_sync_failed"
        assert data["summary"]["errored"] == 1
        assert client.get(base_url).json()["state"] == "disconnected"

    def test_missing_token_returns_422(self, client: TestClient, base_url):
        body = catalog_body()
        del body["access_token"]

        response = client.post(f"{base_url}/connect", json=body)

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_unknown_provider_returns_422(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/connect", json={"provider_type": "ETSY", "access_token": "t"})

        assert response.status_code == 422

    def test_sync_when_disconnected_returns_409(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/sync")

        assert response.status_code == 409
        assert response.json()["error"] == "not_connected"

    def test_disconnect_when_disconnected_succeeds(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/disconnect")

        assert response.status_code == 200
        assert response.json()["state"] == "disconnected"


class TestMessagingConnectionAPI:
    """Integration tests for /api/v1/sellers/{seller_id}/integrations/messaging"""

    @pytest.fixture
    def base_url(self, seller):
        return f"/api/v1/sellers/{seller.id}/integrations/messaging"

    def test_activation_flow(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/connect", json=messaging_body("MOCK_MESSAGING_ACTIVATION"))

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "pending_activation"
        assert data["activation_token"].startswith("join ")
        assert client.get(base_url).json()["state"] == "pending_activation"

        confirm = client.post(f"{base_url}/activation/confirm")
        assert confirm.status_code == 200
        assert confirm.json()["state"] == "connected"

    def test_confirm_without_pending_returns_409(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/activation/confirm")

        assert response.status_code == 409
        assert response.json()["error"] == "not_pending_activation"

    def test_sync_messaging_returns_422(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/sync")

        assert response.status_code == 422

    def test_catalog_provider_on_messaging_kind_returns_422(self, client: TestClient, base_url):
        response = client.post(f"{base_url}/connect", json=catalog_body())

        assert response.status_code == 422


class TestIntegrationsRouting:
    """Test path validation"""

    def test_unknown_seller_returns_404(self, client: TestClient, db_session):
        response = client.get(f"/api/v1/sellers/{uuid4()}/integrations/catalog")

        assert response.status_code == 404
        assert response.json()["error"] == "seller_not_found"

    def test_unknown_provider_kind_returns_422(self, client: TestClient, seller):
        response = client.get(f"/api/v1/sellers/{seller.id}/integrations/payments")

        assert response.status_code == 422

    def test_malformed_seller_id_returns_422(self, client: TestClient, db_session):
        response = client.get("/api/v1/sellers/not-a-uuid/integrations/catalog")

        assert response.status_code == 422
