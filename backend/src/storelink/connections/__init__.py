"""Provider connection lifecycle: state machine, guards, disconnect"""

from .state import ConnectionState, ALLOWED_TRANSITIONS, derive_state
from .guards import OperationGuard, InProcessOperationGuard, RedisOperationGuard, get_operation_guard
from .schemas import ConnectResult, ConnectionStatus
from .disconnect import DisconnectCoordinator
from .service import ConnectionService

__all__ = [
    "ConnectionState",
    "ALLOWED_TRANSITIONS",
    "derive_state",
    "OperationGuard",
    "InProcessOperationGuard",
    "RedisOperationGuard",
    "get_operation_guard",
    "ConnectResult",
    "ConnectionStatus",
    "DisconnectCoordinator",
    "ConnectionService",
]
