"""Unit tests for the CredentialStore"""

import pytest
from pydantic import SecretStr
from sqlalchemy import select

from storelink.credentials.schemas import Credential, CredentialInput
from storelink.credentials.store import CredentialStore
from storelink.errors import ValidationError
from storelink.models import ProviderCredential, ProviderKind, ActivationState


def make_credential(seller_id, token="token-1", **kwargs) -> Credential:
    defaults = dict(
        seller_id=seller_id,
        provider_kind=ProviderKind.CATALOG,
        provider_type="SHOPIFY",
        origin="mystore.myshopify.com",
        secrets={"access_token": SecretStr(token)},
    )
    defaults.update(kwargs)
    return Credential(**defaults)


class TestCredentialStorePut:
    """Test writing credentials"""

    def test_put_then_get_round_trips_secrets(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))

        stored = store.get(seller.id, ProviderKind.CATALOG)

        assert stored is not None
        assert stored.provider_type == "SHOPIFY"
        assert stored.origin == "mystore.myshopify.com"
        assert stored.access_token == "token-1"
        assert stored.activation_state == ActivationState.ACTIVE

    def test_secrets_encrypted_at_rest(self, db_session, seller):
        """Test the row never stores the plaintext token"""
        CredentialStore(db_session).put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))

        row = db_session.execute(select(ProviderCredential)).scalar_one()
        assert "token-1" not in row.secrets_encrypted

    def test_put_replaces_existing_credential(self, db_session, seller):
        """Test a second put overwrites the slot instead of adding a row"""
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, token="old"))
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, token="new"))

        rows = db_session.execute(select(ProviderCredential)).scalars().all()
        assert len(rows) == 1
        assert store.get(seller.id, ProviderKind.CATALOG).access_token == "new"

    def test_put_resets_sync_history(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))
        store.record_sync(seller.id, ProviderKind.CATALOG, {"imported": 3})

        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, token="rotated"))

        stored = store.get(seller.id, ProviderKind.CATALOG)
        assert stored.last_synced_at is None
        assert stored.last_sync_summary is None

    def test_put_restores_history_of_a_read_credential(self, db_session, seller):
        """Test writing back a credential from get() keeps its sync history"""
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, token="kept"))
        store.record_sync(seller.id, ProviderKind.CATALOG, {"imported": 3})
        saved = store.get(seller.id, ProviderKind.CATALOG)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, token="replacement"))

        store.put(seller.id, ProviderKind.CATALOG, saved)

        restored = store.get(seller.id, ProviderKind.CATALOG)
        assert restored.access_token == "kept"
        assert restored.last_sync_summary == {"imported": 3}
        assert restored.last_synced_at is not None

    def test_put_without_secrets_rejected(self, db_session, seller):
        store = CredentialStore(db_session)

        with pytest.raises(ValidationError, match="secrets"):
            store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id, secrets={}))

        assert store.get(seller.id, ProviderKind.CATALOG) is None

    def test_pending_credential_requires_token(self, db_session, seller):
        store = CredentialStore(db_session)
        credential = make_credential(
            seller.id,
            provider_kind=ProviderKind.MESSAGING,
            activation_state=ActivationState.PENDING,
        )

        with pytest.raises(ValidationError, match="activation_token"):
            store.put(seller.id, ProviderKind.MESSAGING, credential)

    def test_kinds_are_independent_slots(self, db_session, seller):
        """Test catalog and messaging credentials coexist"""
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))
        store.put(
            seller.id,
            ProviderKind.MESSAGING,
            make_credential(seller.id, provider_kind=ProviderKind.MESSAGING, provider_type="MOCK_MESSAGING"),
        )

        assert store.get(seller.id, ProviderKind.CATALOG).provider_type == "SHOPIFY"
        assert store.get(seller.id, ProviderKind.MESSAGING).provider_type == "MOCK_MESSAGING"


class TestCredentialStoreClear:
    """Test clearing credentials"""

    def test_clear_removes_credential(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))

        assert store.clear(seller.id, ProviderKind.CATALOG) is True
        assert store.get(seller.id, ProviderKind.CATALOG) is None

    def test_clear_is_idempotent(self, db_session, seller):
        store = CredentialStore(db_session)

        assert store.clear(seller.id, ProviderKind.CATALOG) is False
        assert store.clear(seller.id, ProviderKind.CATALOG) is False

    def test_clear_leaves_other_kind(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))

        store.clear(seller.id, ProviderKind.MESSAGING)

        assert store.get(seller.id, ProviderKind.CATALOG) is not None


class TestCredentialStoreLifecycleHelpers:
    """Test activation, sync recording and listing"""

    def test_mark_active_drops_token(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(
            seller.id,
            ProviderKind.MESSAGING,
            make_credential(
                seller.id,
                provider_kind=ProviderKind.MESSAGING,
                activation_state=ActivationState.PENDING,
                activation_token="join blue-cat",
            ),
        )

        activated = store.mark_active(seller.id, ProviderKind.MESSAGING)

        assert activated.activation_state == ActivationState.ACTIVE
        assert activated.activation_token is None

    def test_record_sync_stores_summary(self, db_session, seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))

        store.record_sync(seller.id, ProviderKind.CATALOG, {"imported": 2, "updated": 0})

        stored = store.get(seller.id, ProviderKind.CATALOG)
        assert stored.last_sync_summary == {"imported": 2, "updated": 0}
        assert stored.last_synced_at is not None

    def test_record_sync_without_credential_is_noop(self, db_session, seller):
        CredentialStore(db_session).record_sync(seller.id, ProviderKind.CATALOG, {"imported": 1})

        assert db_session.execute(select(ProviderCredential)).first() is None

    def test_list_connected_skips_pending(self, db_session, seller, other_seller):
        store = CredentialStore(db_session)
        store.put(seller.id, ProviderKind.CATALOG, make_credential(seller.id))
        store.put(
            other_seller.id,
            ProviderKind.CATALOG,
            make_credential(
                other_seller.id,
                activation_state=ActivationState.PENDING,
                activation_token="token",
            ),
        )

        assert store.list_connected(ProviderKind.CATALOG) == [seller.id]


class TestCredentialInput:
    """Test input normalization and secret handling"""

    def test_provider_type_upper_cased(self):
        credential_input = CredentialInput(provider_type=" shopify ", access_token="t")
        assert credential_input.provider_type == "SHOPIFY"

    def test_blank_fields_become_none(self):
        credential_input = CredentialInput(provider_type="SHOPIFY", origin="  ", account_id="")
        assert credential_input.origin is None
        assert credential_input.account_id is None

    def test_blank_secrets_dropped(self, seller):
        credential = CredentialInput(
            provider_type="SHOPIFY",
            access_token="   ",
            extra_secrets={"webhook_secret": "s3cr3t"},
        ).to_credential(seller.id, ProviderKind.CATALOG)

        assert credential.access_token is None
        assert credential.secret("webhook_secret") == "s3cr3t"

    def test_repr_hides_secrets(self, seller):
        credential = CredentialInput(
            provider_type="SHOPIFY", access_token="shpat_secret"
        ).to_credential(seller.id, ProviderKind.CATALOG)
        credential.activation_token = "join secret-word"

        assert "shpat_secret" not in repr(credential)
        assert "secret-word" not in repr(credential)
