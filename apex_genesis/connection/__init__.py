from .handle import ConnectionHandle
from .manager import ConnectionManager
from .types import (
    OFFLINE_NOTIFICATION,
    ConnectionEntry,
    ConnectionStatus,
    ConnectionStatusCallback,
    EnvironmentEvent,
    FallbackStrategy,
    TransportKind,
)

__all__ = [
    "ConnectionManager",
    "ConnectionHandle",
    "ConnectionEntry",
    "ConnectionStatus",
    "ConnectionStatusCallback",
    "EnvironmentEvent",
    "FallbackStrategy",
    "TransportKind",
    "OFFLINE_NOTIFICATION",
]
