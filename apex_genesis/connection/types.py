import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class TransportKind(Enum):
    HOSTED_DATASTORE = "hosted-datastore"
    HTTP_API = "http-api"
    WEBSOCKET = "websocket"
    LOCAL_STORAGE = "local-storage"


class FallbackStrategy(Enum):
    OFFLINE = "offline"
    MOCK = "mock"
    CACHE = "cache"


class EnvironmentEvent(Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    VISIBLE = "visible"
    TEARDOWN = "teardown"


# Delivered to subscribers when the network goes away. Not a stored status:
# the entry itself is marked DISCONNECTED.
OFFLINE_NOTIFICATION = "offline"

ConnectionStatusCallback = Callable[[str], None]
Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class Subscription:
    callback: ConnectionStatusCallback
    active: bool = True


@dataclass(eq=False)
class ConnectionEntry:
    id: str
    display_name: str
    transport_kind: TransportKind
    endpoint: Optional[str] = None
    timeout_ms: int = 5000
    max_retry_attempts: int = 3
    fallback_strategy: FallbackStrategy = FallbackStrategy.OFFLINE

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    retry_handle: Optional[asyncio.TimerHandle] = None
    subscribers: List[Subscription] = field(default_factory=list)

    last_checked_at: Optional[float] = None
    last_latency_ms: Optional[float] = None
    last_error: Optional[str] = None
    consecutive_failures: int = 0

    @property
    def timeout(self) -> float:
        return self.timeout_ms / 1000.0

    def has_pending_retry(self) -> bool:
        return self.retry_handle is not None and not self.retry_handle.cancelled()

    def cancel_pending(self) -> bool:
        """Cancel the scheduled retry, if any. Returns True if one was pending."""
        handle, self.retry_handle = self.retry_handle, None
        if handle is None or handle.cancelled():
            return False
        handle.cancel()
        return True

    def record_success(self, latency_ms: float):
        self.last_checked_at = time.time()
        self.last_latency_ms = latency_ms
        self.last_error = None
        self.consecutive_failures = 0

    def record_failure(self, error: str, latency_ms: Optional[float] = None):
        self.last_checked_at = time.time()
        self.last_latency_ms = latency_ms
        self.last_error = error
        self.consecutive_failures += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "type": self.transport_kind.value,
            "endpoint": self.endpoint,
            "status": self.status.value,
            "fallback_strategy": self.fallback_strategy.value,
            "retry_pending": self.has_pending_retry(),
            "last_checked_at": self.last_checked_at,
            "last_latency_ms": self.last_latency_ms,
            "last_error": self.last_error,
            "consecutive_failures": self.consecutive_failures,
        }
