"""
Provider ports - interfaces for external catalog and messaging providers

Domain logic (connection state machine, reconciler) depends only on these
ports, never on a concrete adapter. Adapters are constructed per call and hold
no connection state between calls.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Iterator, List, Optional

from ..models.provider_credential import ProviderKind
from ..credentials.schemas import Credential


@dataclass
class ProbeResult:
    """
    Result of a provider reachability probe.

    Attributes:
        success: Whether the provider accepted the credential
        error_message: Human-readable error message if success=False
        latency_ms: Time taken for the probe in milliseconds
        details: Non-secret facts reported by the provider (shop name, phone number)
        probed_at: When the probe was performed
    """
    success: bool
    error_message: Optional[str] = None
    latency_ms: int = 0
    details: Dict[str, Any] = field(default_factory=dict)
    probed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RemoteCatalogItem:
    """
    One product as returned by a catalog provider.

    price is kept as the raw provider value; the reconciler validates and
    converts it so a malformed price fails only its own item.
    """
    external_id: str
    name: str
    price: Any
    description: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    available: bool = True
    category: Optional[str] = None


class ProviderError(Exception):
    """
    Base exception for provider adapter failures.

    Raised by adapters when a probe or fetch cannot complete (network error,
    timeout, rejected credential, malformed response). The connection service
    translates it to ProviderUnreachable.
    """
    pass


class ProviderPort(ABC):
    """
    Common interface of all provider adapters.

    Class attributes:
        provider_type: Registry key (e.g. 'SHOPIFY')
        provider_kind: ProviderKind the adapter serves
        requires_activation: Whether connect ends in PendingActivation
        required_fields: Credential fields that must be present; secrets are
            named 'access_token' or their extra_secrets key, options as 'options.<name>'
    """

    provider_type: ClassVar[str] = ""
    provider_kind: ClassVar[ProviderKind]
    requires_activation: ClassVar[bool] = False
    required_fields: ClassVar[List[str]] = []

    def validate_required_fields(self, credential: Credential, required_fields: Optional[List[str]] = None) -> None:
        """
        Validate that all required fields are present on the credential.

        Field names: 'account_id', 'origin', a secret name (e.g. 'access_token'),
        or 'options.<name>'.

        Raises:
            ProviderError: If any required field is missing or empty
        """
        missing_fields = []
        for name in required_fields if required_fields is not None else self.required_fields:
            if name in ("account_id", "origin"):
                value = getattr(credential, name)
            elif name.startswith("options."):
                value = credential.options.get(name.split(".", 1)[1])
            else:
                value = credential.secret(name)

            if value is None or (isinstance(value, str) and not value.strip()):
                missing_fields.append(name)

        if missing_fields:
            raise ProviderError(
                f"Missing or empty required credential fields: {', '.join(missing_fields)}"
            )

    def normalize(self, credential: Credential) -> Credential:
        """
        Validate and clean up submitted credential values before any network call.

        Raises:
            ProviderError: If a required field is missing or malformed
        """
        self.validate_required_fields(credential)
        return credential

    @abstractmethod
    def probe_reachability(self, credential: Credential) -> ProbeResult:
        """
        Check that the provider is reachable and accepts the credential.

        MUST NOT create any artifacts on the provider side. Network failures,
        timeouts and rejected credentials are reported as success=False rather
        than raised.
        """
        pass


class CatalogProviderPort(ProviderPort):
    """Interface for providers that own a product catalog."""

    provider_kind = ProviderKind.CATALOG

    @abstractmethod
    def fetch_catalog(self, credential: Credential) -> Iterator[RemoteCatalogItem]:
        """
        Yield the full remote catalog, page by page, in a stable order.

        Raises:
            ProviderError: When a page cannot be fetched. Items already yielded
                stay valid; the caller decides whether the pass is usable.
        """
        pass


class MessagingProviderPort(ProviderPort):
    """Interface for providers used to exchange chat messages with customers."""

    provider_kind = ProviderKind.MESSAGING

    def issue_activation_token(self, credential: Credential) -> str:
        """
        Return the token/keyword the end user must send to activate the channel.

        Only called for providers with requires_activation=True.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not use out-of-band activation"
        )
