"""Credential input schema and the in-memory credential bundle."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, SecretStr, field_validator

from ..models.provider_credential import ActivationState, ProviderKind


class CredentialInput(BaseModel):
    """Credentials submitted by a seller to connect a provider.

    access_token is the primary secret (Shopify Admin API token, WhatsApp
    system user token, Twilio auth token). extra_secrets carries any further
    secret values the provider needs.
    """
    provider_type: str = Field(..., min_length=1, max_length=64)
    account_id: Optional[str] = None
    origin: Optional[str] = None
    access_token: Optional[SecretStr] = None
    extra_secrets: Dict[str, SecretStr] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('provider_type')
    @classmethod
    def normalize_provider_type(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator('account_id', 'origin')
    @classmethod
    def strip_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    def to_credential(self, seller_id: Optional[UUID], provider_kind: ProviderKind) -> "Credential":
        secrets: Dict[str, SecretStr] = {}
        if self.access_token is not None and self.access_token.get_secret_value().strip():
            secrets["access_token"] = SecretStr(self.access_token.get_secret_value().strip())
        for name, value in self.extra_secrets.items():
            if value.get_secret_value().strip():
                secrets[name] = SecretStr(value.get_secret_value().strip())

        return Credential(
            seller_id=seller_id,
            provider_kind=provider_kind,
            provider_type=self.provider_type,
            account_id=self.account_id,
            origin=self.origin,
            secrets=secrets,
            options=dict(self.options),
        )


@dataclass
class Credential:
    """Opaque secret bundle for one (seller, provider kind) pair.

    Secrets are held as SecretStr so they never show up in reprs or logs.
    Only the credential store and provider adapters call get_secret_value().
    """
    seller_id: Optional[UUID]
    provider_kind: ProviderKind
    provider_type: str
    account_id: Optional[str] = None
    origin: Optional[str] = None
    secrets: Dict[str, SecretStr] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    activation_state: ActivationState = ActivationState.ACTIVE
    activation_token: Optional[str] = field(default=None, repr=False)
    last_verified_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    last_sync_summary: Optional[Dict[str, Any]] = None

    def secret(self, name: str) -> Optional[str]:
        value = self.secrets.get(name)
        return value.get_secret_value() if value is not None else None

    @property
    def access_token(self) -> Optional[str]:
        return self.secret("access_token")

    @property
    def is_pending(self) -> bool:
        return self.activation_state == ActivationState.PENDING
