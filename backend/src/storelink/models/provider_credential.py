"""ProviderCredential model - stores one provider connection per seller and kind.

The row's presence and activation_state are the single source of truth for
connection state; nothing else is persisted about the lifecycle.
"""

import uuid
from enum import Enum

from sqlalchemy import Column, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import Base, PortableJSONB, TimestampMixin


class ProviderKind(str, Enum):
    """Provider category. A seller holds at most one credential per kind."""
    MESSAGING = "messaging"
    CATALOG = "catalog"


class ActivationState(str, Enum):
    """Activation state of a stored credential.

    ACTIVE: provider usable (Connected)
    PENDING: waiting for the out-of-band handshake (PendingActivation)
    """
    ACTIVE = "active"
    PENDING = "pending"


class ProviderCredential(TimestampMixin, Base):
    """Provider credential for one (seller, provider kind) pair.

    Attributes:
        provider_kind: 'messaging' or 'catalog'
        provider_type: Registry key of the adapter (e.g. 'SHOPIFY')
        account_id: Provider account identifier (phone number id, account SID)
        origin: Origin endpoint (e.g. 'mystore.myshopify.com')
        secrets_encrypted: AES-GCM encrypted JSON of secret values
        options_json: Non-secret provider options
        metadata_json: Non-secret details reported by the reachability probe
        activation_state: 'active' or 'pending'
        activation_token: Token relayed to the end user while pending
        last_verified_at: When the reachability probe last succeeded
        last_synced_at: When the last reconciliation pass finished
        last_sync_summary_json: Most recent SyncSummary
    """

    __tablename__ = "provider_credential"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seller_id = Column(UUID(as_uuid=True), ForeignKey("seller.id", ondelete="CASCADE"), nullable=False)
    provider_kind = Column(Text, nullable=False)
    provider_type = Column(Text, nullable=False)
    account_id = Column(Text, nullable=True)
    origin = Column(Text, nullable=True)
    secrets_encrypted = Column(Text, nullable=False)
    options_json = Column(PortableJSONB, nullable=False, default=dict)
    metadata_json = Column(PortableJSONB, nullable=False, default=dict)
    activation_state = Column(Text, nullable=False, default=ActivationState.ACTIVE.value)
    activation_token = Column(Text, nullable=True)
    last_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_summary_json = Column(PortableJSONB, nullable=True)

    # Relationships
    seller = relationship("Seller", back_populates="credentials")

    __table_args__ = (
        Index("uq_provider_credential_seller_kind", seller_id, provider_kind, unique=True),
    )

    def __repr__(self):
        return (
            f"<ProviderCredential(seller_id={self.seller_id}, kind={self.provider_kind}, "
            f"type={self.provider_type}, activation={self.activation_state})>"
        )
