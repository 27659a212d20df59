"""Connection state machine.

State Flow:
    DISCONNECTED → CONNECTING → CONNECTED | PENDING_ACTIVATION
    PENDING_ACTIVATION → CONNECTED
    CONNECTED → DISCONNECTING → DISCONNECTED

Any state may restart the cycle with a new credential submission, and a
failed submission returns to the state it started from. CONNECTING and
DISCONNECTING only exist while an operation runs; the state at rest is
derived from the stored credential.
"""

from enum import Enum
from typing import Optional

from ..credentials.schemas import Credential
from ..models.provider_credential import ActivationState


class ConnectionState(str, Enum):
    """Connection state of one (seller, provider kind) pair."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    PENDING_ACTIVATION = "pending_activation"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


ALLOWED_TRANSITIONS = {
    ConnectionState.DISCONNECTED: [
        ConnectionState.CONNECTING,
        ConnectionState.DISCONNECTING,  # Disconnect is idempotent
    ],
    ConnectionState.CONNECTING: [
        ConnectionState.CONNECTED,
        ConnectionState.PENDING_ACTIVATION,
        ConnectionState.DISCONNECTED,  # Probe or initial sync failed
    ],
    ConnectionState.PENDING_ACTIVATION: [
        ConnectionState.CONNECTED,
        ConnectionState.CONNECTING,
        ConnectionState.DISCONNECTING,
    ],
    ConnectionState.CONNECTED: [
        ConnectionState.CONNECTING,
        ConnectionState.DISCONNECTING,
    ],
    ConnectionState.DISCONNECTING: [ConnectionState.DISCONNECTED],
}


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(current: ConnectionState, new: ConnectionState) -> None:
    """Validate that a state transition is allowed.

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current, [])
    if new not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current.value} -> {new.value}. "
            f"Allowed transitions from {current.value}: "
            f"{[s.value for s in allowed]}"
        )


def derive_state(credential: Optional[Credential]) -> ConnectionState:
    """Map a stored credential (or its absence) to the resting state."""
    if credential is None:
        return ConnectionState.DISCONNECTED
    if credential.activation_state == ActivationState.PENDING:
        return ConnectionState.PENDING_ACTIVATION
    return ConnectionState.CONNECTED
