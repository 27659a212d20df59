"""Error taxonomy for the integration engine.

Connection-level errors are raised synchronously to the caller of
connect/sync. Per-item reconciliation errors are absorbed into the
SyncSummary and never propagate. Disconnect never raises.
"""

from typing import Optional


class IntegrationError(Exception):
    """Base class for all integration engine errors."""
    pass


class ValidationError(IntegrationError):
    """Malformed or incomplete input. Never persisted."""
    pass


class InvalidCredential(ValidationError):
    """Credential input failed validation before any provider call."""
    pass


class ManagedItemError(ValidationError):
    """Manual edit attempted on an item owned by an external provider."""
    pass


class ProviderUnreachable(IntegrationError):
    """Probe or fetch failed due to network, timeout or rejected auth."""

    def __init__(self, message: str, provider_type: Optional[str] = None):
        super().__init__(message)
        self.provider_type = provider_type


class InitialSyncFailed(IntegrationError):
    """Every item of the first reconciliation pass failed; connect aborted."""

    def __init__(self, message: str, summary=None):
        super().__init__(message)
        self.summary = summary


class ItemReconciliationError(IntegrationError):
    """One remote item could not be upserted. Counted, never raised upward."""

    def __init__(self, message: str, external_ref: Optional[str] = None):
        super().__init__(message)
        self.external_ref = external_ref


class OperationInProgress(IntegrationError):
    """Another connect/sync holds the (seller, provider kind) guard."""
    pass


class SyncInProgress(OperationInProgress):
    """A reconciliation pass is already running for this seller and kind."""
    pass


class NotConnected(IntegrationError):
    """Operation requires a Connected provider."""
    pass


class NotPendingActivation(IntegrationError):
    """confirm_activation called outside PendingActivation."""
    pass


class SellerNotFound(IntegrationError):
    pass


class CatalogItemNotFound(IntegrationError):
    pass
