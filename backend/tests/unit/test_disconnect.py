"""Unit tests for DisconnectCoordinator"""

from decimal import Decimal
from unittest.mock import patch

from pydantic import SecretStr
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from storelink.connections.disconnect import DisconnectCoordinator
from storelink.credentials.schemas import Credential
from storelink.credentials.store import CredentialStore
from storelink.models import CatalogItem, ItemSource, ProviderKind


def add_items(db_session, seller_id):
    db_session.add_all([
        CatalogItem(
            seller_id=seller_id,
            name="Imported A",
            price=Decimal("10.00"),
            source=ItemSource.EXTERNAL.value,
            external_ref="a",
            external_provider="SHOPIFY",
        ),
        CatalogItem(
            seller_id=seller_id,
            name="Imported B",
            price=Decimal("20.00"),
            source=ItemSource.EXTERNAL.value,
            external_ref="b",
            external_provider="SHOPIFY",
        ),
        CatalogItem(seller_id=seller_id, name="Handmade", price=Decimal("5.00")),
    ])
    db_session.commit()


def store_credential(db_session, seller_id, provider_kind=ProviderKind.CATALOG):
    CredentialStore(db_session).put(
        seller_id,
        provider_kind,
        Credential(
            seller_id=seller_id,
            provider_kind=provider_kind,
            provider_type="SHOPIFY",
            secrets={"access_token": SecretStr("token")},
        ),
    )


def availability(db_session, seller_id):
    stmt = select(CatalogItem).where(CatalogItem.seller_id == seller_id)
    return {item.name: item.is_available for item in db_session.execute(stmt).scalars()}


class TestDisconnectCoordinator:
    """Test catalog teardown"""

    def test_imported_items_demoted_not_deleted(self, db_session, seller):
        add_items(db_session, seller.id)
        store_credential(db_session, seller.id)

        DisconnectCoordinator(db_session).disconnect(seller.id, ProviderKind.CATALOG)

        assert availability(db_session, seller.id) == {
            "Imported A": False,
            "Imported B": False,
            "Handmade": True,
        }
        assert CredentialStore(db_session).get(seller.id, ProviderKind.CATALOG) is None

    def test_other_sellers_untouched(self, db_session, seller, other_seller):
        add_items(db_session, seller.id)
        add_items(db_session, other_seller.id)

        DisconnectCoordinator(db_session).disconnect(seller.id, ProviderKind.CATALOG)

        assert all(availability(db_session, other_seller.id).values())

    def test_demote_returns_row_count(self, db_session, seller):
        add_items(db_session, seller.id)

        assert DisconnectCoordinator(db_session).demote_external_items(seller.id) == 2

    def test_disconnect_without_credential_is_noop(self, db_session, seller):
        coordinator = DisconnectCoordinator(db_session)

        coordinator.disconnect(seller.id, ProviderKind.CATALOG)
        coordinator.disconnect(seller.id, ProviderKind.CATALOG)

        assert CredentialStore(db_session).get(seller.id, ProviderKind.CATALOG) is None

    def test_messaging_disconnect_leaves_catalog_items(self, db_session, seller):
        add_items(db_session, seller.id)
        store_credential(db_session, seller.id, ProviderKind.MESSAGING)

        DisconnectCoordinator(db_session).disconnect(seller.id, ProviderKind.MESSAGING)

        assert all(availability(db_session, seller.id).values())
        assert CredentialStore(db_session).get(seller.id, ProviderKind.MESSAGING) is None

    def test_demotion_failure_still_clears_credential(self, db_session, seller):
        """Test a failed bulk update is logged and the credential still goes"""
        add_items(db_session, seller.id)
        store_credential(db_session, seller.id)
        real_execute = db_session.execute
        calls = {"n": 0}

        def fail_first_execute(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("UPDATE", {}, Exception("database is locked"))
            return real_execute(*args, **kwargs)

        with patch.object(db_session, "execute", side_effect=fail_first_execute):
            DisconnectCoordinator(db_session).disconnect(seller.id, ProviderKind.CATALOG)

        assert CredentialStore(db_session).get(seller.id, ProviderKind.CATALOG) is None
        assert availability(db_session, seller.id)["Imported A"] is True

    def test_demotion_failure_returns_none(self, db_session, seller):
        add_items(db_session, seller.id)

        with patch.object(
            db_session, "execute", side_effect=OperationalError("UPDATE", {}, Exception("locked"))
        ):
            assert DisconnectCoordinator(db_session).demote_external_items(seller.id) is None

    def test_credential_clear_failure_is_swallowed(self, db_session, seller):
        store_credential(db_session, seller.id)
        store = CredentialStore(db_session)

        with patch.object(store, "clear", side_effect=OperationalError("DELETE", {}, Exception("gone"))) as clear:
            DisconnectCoordinator(db_session, store).disconnect(seller.id, ProviderKind.CATALOG)

        assert clear.call_count == 2
