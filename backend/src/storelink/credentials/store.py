"""Credential Store - the single read/write path for provider secrets.

Never talks to the network. A credential row is written in one commit, so
readers either see the previous credential or the complete new one.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import SecretStr
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from ..errors import ValidationError
from ..models.provider_credential import ProviderCredential, ProviderKind, ActivationState
from .encryption import EncryptionService
from .schemas import Credential


logger = logging.getLogger(__name__)


def _slot_context(seller_id: UUID, provider_kind: ProviderKind) -> str:
    return f"{seller_id}:{ProviderKind(provider_kind).value}"


class CredentialStore:
    """Persist, read and clear provider credentials for sellers.

    Usage:
        store = CredentialStore(db)
        store.put(seller.id, ProviderKind.CATALOG, credential)
        credential = store.get(seller.id, ProviderKind.CATALOG)
        store.clear(seller.id, ProviderKind.CATALOG)
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_row(self, seller_id: UUID, provider_kind: ProviderKind, lock: bool = False) -> Optional[ProviderCredential]:
        stmt = select(ProviderCredential).where(
            ProviderCredential.seller_id == seller_id,
            ProviderCredential.provider_kind == ProviderKind(provider_kind).value,
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _validate(self, credential: Credential) -> None:
        missing = []
        if not credential.provider_type or not credential.provider_type.strip():
            missing.append("provider_type")
        if not credential.secrets:
            missing.append("secrets")
        if credential.activation_state == ActivationState.PENDING and not credential.activation_token:
            missing.append("activation_token")

        if missing:
            raise ValidationError(
                f"Missing or empty required credential fields: {', '.join(missing)}"
            )

    def put(self, seller_id: UUID, provider_kind: ProviderKind, credential: Credential) -> Credential:
        """Replace any existing credential for the slot with this one.

        Sync history is taken from the credential, so writing back a
        credential read earlier with get() restores the slot as it was.

        Raises:
            ValidationError: If required fields are missing
            EncryptionError: If secrets cannot be encrypted
        """
        provider_kind = ProviderKind(provider_kind)
        self._validate(credential)

        encrypted = EncryptionService.encrypt_secrets(
            {name: value.get_secret_value() for name, value in credential.secrets.items()},
            _slot_context(seller_id, provider_kind),
        )

        try:
            row = self._get_row(seller_id, provider_kind, lock=True)
            if row is None:
                row = ProviderCredential(seller_id=seller_id, provider_kind=provider_kind.value)
                self.db.add(row)

            row.provider_type = credential.provider_type
            row.account_id = credential.account_id
            row.origin = credential.origin
            row.secrets_encrypted = encrypted
            row.options_json = dict(credential.options)
            row.metadata_json = dict(credential.metadata)
            row.activation_state = ActivationState(credential.activation_state).value
            row.activation_token = credential.activation_token
            row.last_verified_at = credential.last_verified_at
            # Fresh submissions carry no history; a restored credential keeps its own
            row.last_synced_at = credential.last_synced_at
            row.last_sync_summary_json = credential.last_sync_summary
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Credential stored",
            extra={
                "seller_id": str(seller_id),
                "provider_kind": provider_kind.value,
                "provider_type": credential.provider_type,
                "activation_state": row.activation_state,
            }
        )
        return self._to_credential(row)

    def get(self, seller_id: UUID, provider_kind: ProviderKind) -> Optional[Credential]:
        """Return the stored credential with decrypted secrets, or None."""
        row = self._get_row(seller_id, provider_kind)
        if row is None:
            return None
        return self._to_credential(row)

    def clear(self, seller_id: UUID, provider_kind: ProviderKind) -> bool:
        """Delete the credential for the slot. Clearing an empty slot is a no-op.

        Returns:
            True if a credential was removed
        """
        provider_kind = ProviderKind(provider_kind)
        try:
            result = self.db.execute(
                delete(ProviderCredential).where(
                    ProviderCredential.seller_id == seller_id,
                    ProviderCredential.provider_kind == provider_kind.value,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info(
                "Credential cleared",
                extra={"seller_id": str(seller_id), "provider_kind": provider_kind.value}
            )
        return removed

    def mark_active(self, seller_id: UUID, provider_kind: ProviderKind) -> Optional[Credential]:
        """Flip a pending credential to active and drop its activation token."""
        try:
            row = self._get_row(seller_id, provider_kind, lock=True)
            if row is None:
                return None
            row.activation_state = ActivationState.ACTIVE.value
            row.activation_token = None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_credential(row)

    def record_sync(
        self,
        seller_id: UUID,
        provider_kind: ProviderKind,
        summary: Dict[str, Any],
        synced_at: Optional[datetime] = None,
    ) -> None:
        """Store the latest sync summary and timestamp on the credential."""
        try:
            row = self._get_row(seller_id, provider_kind, lock=True)
            if row is None:
                # Disconnected while the pass was running
                logger.warning(
                    "Sync finished for a cleared credential; summary not recorded",
                    extra={"seller_id": str(seller_id), "provider_kind": ProviderKind(provider_kind).value}
                )
                return
            row.last_synced_at = synced_at or datetime.now(timezone.utc)
            row.last_sync_summary_json = summary
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_connected(self, provider_kind: ProviderKind) -> List[UUID]:
        """Seller ids holding an active credential of this kind."""
        stmt = select(ProviderCredential.seller_id).where(
            ProviderCredential.provider_kind == ProviderKind(provider_kind).value,
            ProviderCredential.activation_state == ActivationState.ACTIVE.value,
        ).order_by(ProviderCredential.created_at)
        return list(self.db.execute(stmt).scalars().all())

    def _to_credential(self, row: ProviderCredential) -> Credential:
        provider_kind = ProviderKind(row.provider_kind)
        secrets = EncryptionService.decrypt_secrets(
            row.secrets_encrypted,
            _slot_context(row.seller_id, provider_kind),
        )
        return Credential(
            seller_id=row.seller_id,
            provider_kind=provider_kind,
            provider_type=row.provider_type,
            account_id=row.account_id,
            origin=row.origin,
            secrets={name: SecretStr(value) for name, value in secrets.items()},
            options=dict(row.options_json or {}),
            metadata=dict(row.metadata_json or {}),
            activation_state=ActivationState(row.activation_state),
            activation_token=row.activation_token,
            last_verified_at=row.last_verified_at,
            last_synced_at=row.last_synced_at,
            last_sync_summary=row.last_sync_summary_json,
        )
