from typing import List, Optional

from .backoff import BackoffConfig, BackoffPolicy
from .config import ApexSettings
from .connection.manager import ConnectionManager
from .connection.types import ConnectionEntry, FallbackStrategy, TransportKind
from .probes import (
    FileKeyValueStore,
    HttpApiProber,
    LocalStorageProber,
    ProberTable,
    SupabaseProber,
    WebSocketProber,
    build_prober_table,
)


def build_default_entries(settings: ApexSettings) -> List[ConnectionEntry]:
    """The dashboard's standard connections, in startup order."""
    return [
        ConnectionEntry(
            id="supabase",
            display_name="Supabase Database",
            transport_kind=TransportKind.HOSTED_DATASTORE,
            timeout_ms=10000,
            max_retry_attempts=3,
            fallback_strategy=FallbackStrategy.OFFLINE,
        ),
        ConnectionEntry(
            id="api",
            display_name="Backend API",
            transport_kind=TransportKind.HTTP_API,
            endpoint=settings.api_url,
            timeout_ms=5000,
            max_retry_attempts=5,
            fallback_strategy=FallbackStrategy.MOCK,
        ),
        ConnectionEntry(
            id="websocket",
            display_name="Real-time Updates",
            transport_kind=TransportKind.WEBSOCKET,
            endpoint=settings.websocket_url,
            timeout_ms=3000,
            max_retry_attempts=10,
            fallback_strategy=FallbackStrategy.CACHE,
        ),
        ConnectionEntry(
            id="local",
            display_name="Local Storage",
            transport_kind=TransportKind.LOCAL_STORAGE,
            timeout_ms=1000,
            max_retry_attempts=1,
            fallback_strategy=FallbackStrategy.OFFLINE,
        ),
    ]


def build_default_probers(settings: ApexSettings) -> ProberTable:
    return build_prober_table(
        SupabaseProber(
            url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            table=settings.supabase_health_table,
        ),
        HttpApiProber(fallback_path=settings.api_fallback_path),
        WebSocketProber(),
        LocalStorageProber(FileKeyValueStore(settings.storage_dir)),
    )


def create_connection_manager(
    settings: Optional[ApexSettings] = None,
) -> ConnectionManager:
    """Build a manager wired to the standard connections. Call ``start()`` on it."""
    settings = settings or ApexSettings.from_env()
    backoff = BackoffPolicy(
        BackoffConfig(
            base_delay_ms=settings.base_retry_delay_ms,
            max_delay_ms=settings.max_retry_delay_ms,
        )
    )
    return ConnectionManager(
        entries=build_default_entries(settings),
        probers=build_default_probers(settings),
        backoff=backoff,
        stagger_ms=settings.stagger_ms,
        health_check_interval_ms=settings.health_check_interval_ms,
    )
