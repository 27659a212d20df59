"""Connection service - the lifecycle operations exposed to callers.

connect → probe → persist → (catalog) initial reconciliation → Connected
connect → probe → persist pending → PendingActivation (activation providers)
confirm_activation → Connected
sync → reconciliation pass on a Connected catalog provider
disconnect → demote imported items, clear credential → Disconnected
"""

import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..catalog.reconciler import CatalogReconciler
from ..catalog.schemas import SyncSummary
from ..config import settings
from ..credentials.encryption import EncryptionError
from ..credentials.schemas import Credential, CredentialInput
from ..credentials.store import CredentialStore
from ..errors import (
    InitialSyncFailed,
    InvalidCredential,
    NotConnected,
    NotPendingActivation,
    OperationInProgress,
    ProviderUnreachable,
    SyncInProgress,
    ValidationError,
)
from ..models.provider_credential import ActivationState, ProviderKind
from ..observability.metrics import connection_transitions_total, connect_failures_total
from ..providers.ports import CatalogProviderPort, ProviderError, ProviderPort
from ..providers.registry import ProviderRegistry
from .disconnect import DisconnectCoordinator
from .guards import OperationGuard, get_operation_guard
from .schemas import ConnectResult, ConnectionStatus
from .state import ConnectionState, derive_state, validate_transition


logger = logging.getLogger(__name__)


class ConnectionService:
    """Drives the connection state machine for one database session.

    Args:
        db: Session used for every read and write of the operation
        guard: Operation guard; defaults to the process-wide one
        provider_factory: provider_type -> adapter instance; defaults to
            ProviderRegistry.get

    Usage:
        service = ConnectionService(db)
        result = service.connect(seller.id, ProviderKind.CATALOG, credential_input)
        summary = service.sync(seller.id, ProviderKind.CATALOG)
        service.disconnect(seller.id, ProviderKind.CATALOG)
    """

    def __init__(
        self,
        db: Session,
        guard: Optional[OperationGuard] = None,
        provider_factory: Optional[Callable[[str], ProviderPort]] = None,
    ):
        self.db = db
        self.store = CredentialStore(db)
        self.guard = guard or get_operation_guard()
        self.provider_factory = provider_factory or ProviderRegistry.get

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self, seller_id: UUID, provider_kind: ProviderKind) -> ConnectionStatus:
        """Current resting state of the pair. Never exposes secrets."""
        provider_kind = ProviderKind(provider_kind)
        credential = self.store.get(seller_id, provider_kind)
        return ConnectionStatus.from_credential(seller_id, provider_kind, credential)

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def connect(
        self,
        seller_id: UUID,
        provider_kind: ProviderKind,
        credential_input: CredentialInput,
    ) -> ConnectResult:
        """Submit credentials and drive the pair to Connected or PendingActivation.

        Replaces any existing credential once the new one has been probed
        successfully. If the connect fails afterwards, the previous
        credential is put back and the pair keeps its earlier state.

        Raises:
            InvalidCredential: Malformed input, rejected before any network call
            ProviderUnreachable: Probe failed, or the initial catalog fetch failed
            InitialSyncFailed: Every item of the initial catalog snapshot failed
            OperationInProgress: Another connect or sync holds the pair
        """
        provider_kind = ProviderKind(provider_kind)
        provider = self._resolve_provider(credential_input.provider_type, provider_kind)
        credential = self._normalize(provider, credential_input.to_credential(seller_id, provider_kind))

        with self.guard.hold(seller_id, provider_kind) as acquired:
            if not acquired:
                connect_failures_total.labels(provider_kind=provider_kind.value, reason="busy").inc()
                raise OperationInProgress(
                    f"Another {provider_kind.value} operation is running for seller {seller_id}"
                )

            previous = self._current_credential(seller_id, provider_kind)
            self._transition(
                seller_id, provider_kind, derive_state(previous), ConnectionState.CONNECTING,
                credential.provider_type,
            )

            probe = provider.probe_reachability(credential)
            if not probe.success:
                connect_failures_total.labels(provider_kind=provider_kind.value, reason="unreachable").inc()
                # Nothing was written; the previous credential, if any, stays
                self._transition(
                    seller_id, provider_kind, ConnectionState.CONNECTING, derive_state(previous),
                    credential.provider_type,
                )
                raise ProviderUnreachable(
                    probe.error_message or "Provider probe failed",
                    provider_type=credential.provider_type,
                )

            credential.metadata = dict(probe.details)
            credential.last_verified_at = probe.probed_at

            activation_token = None
            if provider.requires_activation:
                activation_token = provider.issue_activation_token(credential)
                credential.activation_state = ActivationState.PENDING
                credential.activation_token = activation_token
            else:
                credential.activation_state = ActivationState.ACTIVE
                credential.activation_token = None

            self.store.put(seller_id, provider_kind, credential)

            summary = None
            if isinstance(provider, CatalogProviderPort):
                summary = self._initial_sync(seller_id, provider, credential, previous)

        status = self.get_state(seller_id, provider_kind)
        self._transition(
            seller_id, provider_kind, ConnectionState.CONNECTING, status.state, credential.provider_type
        )
        return ConnectResult(
            state=status.state,
            activation_token=activation_token,
            sync_summary=summary,
            status=status,
        )

    def confirm_activation(self, seller_id: UUID, provider_kind: ProviderKind) -> ConnectionStatus:
        """Record that the end user completed the out-of-band handshake.

        Raises:
            NotPendingActivation: If the pair is not waiting for activation
        """
        provider_kind = ProviderKind(provider_kind)
        credential = self.store.get(seller_id, provider_kind)
        if derive_state(credential) != ConnectionState.PENDING_ACTIVATION:
            raise NotPendingActivation(
                f"{provider_kind.value} connection of seller {seller_id} is not pending activation"
            )

        self.store.mark_active(seller_id, provider_kind)
        status = self.get_state(seller_id, provider_kind)
        self._transition(
            seller_id, provider_kind, ConnectionState.PENDING_ACTIVATION, status.state, credential.provider_type
        )
        return status

    def sync(self, seller_id: UUID, provider_kind: ProviderKind = ProviderKind.CATALOG) -> SyncSummary:
        """Run one reconciliation pass for a Connected catalog provider.

        Raises:
            ValidationError: If provider_kind is not a catalog kind
            NotConnected: If no active credential exists
            SyncInProgress: If a connect or sync already holds the pair
            ProviderUnreachable: If the fetch fails before the first item
        """
        provider_kind = ProviderKind(provider_kind)
        if provider_kind != ProviderKind.CATALOG:
            raise ValidationError(f"Cannot sync a {provider_kind.value} provider")

        with self.guard.hold(seller_id, provider_kind) as acquired:
            if not acquired:
                raise SyncInProgress(f"A catalog sync is already running for seller {seller_id}")

            credential = self.store.get(seller_id, provider_kind)
            if derive_state(credential) != ConnectionState.CONNECTED:
                raise NotConnected(f"Seller {seller_id} has no connected catalog provider")

            provider = self._resolve_provider(credential.provider_type, provider_kind)
            summary = self._reconcile(seller_id, provider, credential)
            self.store.record_sync(
                seller_id, provider_kind, summary.model_dump(mode="json"), synced_at=summary.finished_at
            )

        return summary

    def disconnect(self, seller_id: UUID, provider_kind: ProviderKind) -> ConnectionStatus:
        """Tear the connection down. Always ends Disconnected, never raises.

        Waits up to DISCONNECT_LOCK_WAIT_SECONDS for an in-flight connect or
        sync of the same pair, then proceeds regardless. An unavailable
        guard backend is logged and skipped.
        """
        provider_kind = ProviderKind(provider_kind)
        log_extra = {"seller_id": str(seller_id), "provider_kind": provider_kind.value}

        try:
            current = derive_state(self.store.get(seller_id, provider_kind))
        except Exception:
            self.db.rollback()
            logger.warning("Could not read the credential before disconnect", exc_info=True, extra=log_extra)
            current = None
        self._transition(seller_id, provider_kind, current, ConnectionState.DISCONNECTING)

        token = None
        try:
            token = self.guard.acquire(
                seller_id, provider_kind, wait_seconds=settings.DISCONNECT_LOCK_WAIT_SECONDS
            )
        except Exception:
            logger.error("Operation guard unavailable; disconnecting without it", exc_info=True, extra=log_extra)
        else:
            if token is None:
                logger.warning("Disconnecting while another operation still holds the pair", extra=log_extra)

        try:
            DisconnectCoordinator(self.db, self.store).disconnect(seller_id, provider_kind)
        finally:
            if token is not None:
                try:
                    self.guard.release(seller_id, provider_kind, token)
                except Exception:
                    logger.error("Failed to release operation guard", exc_info=True, extra=log_extra)

        self._transition(seller_id, provider_kind, ConnectionState.DISCONNECTING, ConnectionState.DISCONNECTED)
        return ConnectionStatus(
            seller_id=seller_id,
            provider_kind=provider_kind,
            state=ConnectionState.DISCONNECTED,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_provider(self, provider_type: str, provider_kind: ProviderKind) -> ProviderPort:
        try:
            provider = self.provider_factory(provider_type)
        except ValueError as e:
            raise InvalidCredential(str(e))

        if provider.provider_kind != provider_kind:
            raise InvalidCredential(
                f"{provider_type} is a {provider.provider_kind.value} provider, not {provider_kind.value}"
            )
        return provider

    def _normalize(self, provider: ProviderPort, credential: Credential) -> Credential:
        try:
            return provider.normalize(credential)
        except ProviderError as e:
            connect_failures_total.labels(
                provider_kind=credential.provider_kind.value, reason="invalid_credential"
            ).inc()
            raise InvalidCredential(str(e))

    def _current_credential(self, seller_id: UUID, provider_kind: ProviderKind) -> Optional[Credential]:
        """Stored credential, or None if there is none or it cannot be decrypted."""
        try:
            return self.store.get(seller_id, provider_kind)
        except EncryptionError:
            logger.warning(
                "Stored credential cannot be decrypted and will be replaced",
                exc_info=True,
                extra={"seller_id": str(seller_id), "provider_kind": provider_kind.value}
            )
            return None

    def _reconcile(self, seller_id: UUID, provider: CatalogProviderPort, credential: Credential) -> SyncSummary:
        reconciler = CatalogReconciler(self.db, seller_id, credential.provider_type)
        return reconciler.reconcile(provider.fetch_catalog(credential))

    def _initial_sync(
        self,
        seller_id: UUID,
        provider: CatalogProviderPort,
        credential: Credential,
        previous: Optional[Credential],
    ) -> SyncSummary:
        """First reconciliation pass of a new catalog credential.

        A fatal outcome puts back the previous credential (or clears the slot
        if there was none), so the pair never ends half-connected.
        """
        provider_kind = ProviderKind.CATALOG
        try:
            summary = self._reconcile(seller_id, provider, credential)
        except ProviderUnreachable:
            self._abort_connect(seller_id, provider_kind, previous, "unreachable")
            raise
        except BaseException:
            # Cancellation or a crash mid-pass; already upserted items stay
            self._abort_connect(seller_id, provider_kind, previous, "interrupted")
            raise

        if summary.all_failed:
            self._abort_connect(seller_id, provider_kind, previous, "initial_sync_failed")
            raise InitialSyncFailed(
                f"All {summary.errored} catalog items failed to import",
                summary=summary,
            )

        self.store.record_sync(
            seller_id, provider_kind, summary.model_dump(mode="json"), synced_at=summary.finished_at
        )
        return summary

    def _abort_connect(
        self,
        seller_id: UUID,
        provider_kind: ProviderKind,
        previous: Optional[Credential],
        reason: str,
    ) -> None:
        connect_failures_total.labels(provider_kind=provider_kind.value, reason=reason).inc()
        # Discard whatever the interrupted item left in the session
        self.db.rollback()
        try:
            if previous is None:
                self.store.clear(seller_id, provider_kind)
            else:
                self.store.put(seller_id, provider_kind, previous)
        except Exception:
            logger.error(
                "Failed to restore the previous credential after an aborted connect",
                exc_info=True,
                extra={"seller_id": str(seller_id), "provider_kind": provider_kind.value}
            )
        self._transition(seller_id, provider_kind, ConnectionState.CONNECTING, derive_state(previous))

    def _transition(
        self,
        seller_id: UUID,
        provider_kind: ProviderKind,
        current: Optional[ConnectionState],
        new: ConnectionState,
        provider_type: Optional[str] = None,
    ) -> None:
        """Validate and record a state change. current is None when it could not be read."""
        if current is not None:
            validate_transition(current, new)

        connection_transitions_total.labels(provider_kind=provider_kind.value, state=new.value).inc()
        logger.info(
            f"Connection {provider_kind.value} -> {new.value}",
            extra={
                "seller_id": str(seller_id),
                "provider_kind": provider_kind.value,
                "provider_type": provider_type,
                "state": new.value,
            }
        )
