"""Pydantic schemas for connection lifecycle responses"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..catalog.schemas import SyncSummary
from ..credentials.schemas import Credential
from ..models.provider_credential import ProviderKind
from .state import ConnectionState, derive_state


class ConnectionStatus(BaseModel):
    """Read-only view of one (seller, provider kind) connection.

    Never carries secrets or the activation token.
    """
    seller_id: UUID
    provider_kind: ProviderKind
    state: ConnectionState
    provider_type: Optional[str] = None
    account_id: Optional[str] = None
    origin: Optional[str] = None
    last_verified_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    summary: Optional[SyncSummary] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_credential(
        cls,
        seller_id: UUID,
        provider_kind: ProviderKind,
        credential: Optional[Credential],
    ) -> "ConnectionStatus":
        if credential is None:
            return cls(
                seller_id=seller_id,
                provider_kind=provider_kind,
                state=ConnectionState.DISCONNECTED,
            )

        summary = None
        if credential.last_sync_summary:
            summary = SyncSummary.model_validate(credential.last_sync_summary)

        return cls(
            seller_id=seller_id,
            provider_kind=provider_kind,
            state=derive_state(credential),
            provider_type=credential.provider_type,
            account_id=credential.account_id,
            origin=credential.origin,
            last_verified_at=credential.last_verified_at,
            last_synced_at=credential.last_synced_at,
            summary=summary,
            metadata=dict(credential.metadata),
        )


class ConnectResult(BaseModel):
    """Outcome of a successful connect.

    activation_token is set only when the provider needs an out-of-band
    handshake; sync_summary only for catalog providers.
    """
    state: ConnectionState
    activation_token: Optional[str] = None
    sync_summary: Optional[SyncSummary] = None
    status: ConnectionStatus
