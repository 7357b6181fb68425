from apex_genesis.config import ApexSettings
from apex_genesis.connection import (
    ConnectionManager,
    ConnectionStatus,
    FallbackStrategy,
    TransportKind,
)
from apex_genesis.probes import (
    HttpApiProber,
    LocalStorageProber,
    SupabaseProber,
    WebSocketProber,
)
from apex_genesis.registry import (
    build_default_entries,
    build_default_probers,
    create_connection_manager,
)


def _settings(tmp_path):
    return ApexSettings.from_env(
        env={
            "APEX_API_URL": "http://api.internal/api",
            "APEX_WEBSOCKET_URL": "ws://realtime.internal/ws",
            "SUPABASE_URL": "https://project.supabase.co",
            "SUPABASE_ANON_KEY": "anon",
            "APEX_STORAGE_DIR": str(tmp_path),
            "APEX_BASE_RETRY_DELAY_MS": "1000",
            "APEX_MAX_RETRY_DELAY_MS": "8000",
        }
    )


def test_default_entries(tmp_path):
    entries = build_default_entries(_settings(tmp_path))

    assert [entry.id for entry in entries] == ["supabase", "api", "websocket", "local"]
    by_id = {entry.id: entry for entry in entries}

    assert by_id["supabase"].transport_kind == TransportKind.HOSTED_DATASTORE
    assert by_id["supabase"].endpoint is None
    assert by_id["supabase"].timeout_ms == 10000
    assert by_id["api"].endpoint == "http://api.internal/api"
    assert by_id["api"].max_retry_attempts == 5
    assert by_id["api"].fallback_strategy == FallbackStrategy.MOCK
    assert by_id["websocket"].endpoint == "ws://realtime.internal/ws"
    assert by_id["websocket"].fallback_strategy == FallbackStrategy.CACHE
    assert by_id["local"].transport_kind == TransportKind.LOCAL_STORAGE
    assert all(entry.status == ConnectionStatus.DISCONNECTED for entry in entries)


def test_default_probers(tmp_path):
    probers = build_default_probers(_settings(tmp_path))

    assert isinstance(probers[TransportKind.HOSTED_DATASTORE], SupabaseProber)
    assert isinstance(probers[TransportKind.HTTP_API], HttpApiProber)
    assert isinstance(probers[TransportKind.WEBSOCKET], WebSocketProber)
    assert isinstance(probers[TransportKind.LOCAL_STORAGE], LocalStorageProber)
    assert probers[TransportKind.LOCAL_STORAGE].store.directory == tmp_path


def test_create_connection_manager(tmp_path):
    manager = create_connection_manager(_settings(tmp_path))

    assert isinstance(manager, ConnectionManager)
    assert not manager.is_running
    assert manager.backoff.calculate_delay_ms(5) == 8000
    assert manager.backoff.calculate_delay_ms(0) == 1000
    assert set(manager.get_all_connection_statuses()) == {
        "supabase",
        "api",
        "websocket",
        "local",
    }
