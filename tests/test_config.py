from pathlib import Path

import pytest

from apex_genesis.config import ApexSettings
from apex_genesis.exceptions import ApexConfigurationError


def test_defaults_from_empty_environment():
    settings = ApexSettings.from_env(env={})

    assert settings.api_url == "http://localhost:5000/api"
    assert settings.websocket_url == "ws://localhost:8080/ws"
    assert settings.supabase_url == ""
    assert settings.supabase_health_table == "mcp_servers"
    assert settings.api_fallback_path == "adapters"
    assert settings.health_check_interval_ms == 30000
    assert settings.stagger_ms == 100
    assert settings.base_retry_delay_ms == 2000
    assert settings.max_retry_delay_ms == 30000
    assert settings.storage_dir == Path("~/.apex_genesis/storage").expanduser()


def test_environment_overrides():
    settings = ApexSettings.from_env(
        env={
            "APEX_API_URL": "https://apex.example.com/api/",
            "APEX_WEBSOCKET_URL": "wss://apex.example.com/ws",
            "SUPABASE_URL": "https://project.supabase.co/",
            "SUPABASE_ANON_KEY": "anon",
            "APEX_API_FALLBACK_PATH": "/servers/",
            "APEX_STORAGE_DIR": "/tmp/apex",
            "APEX_HEALTH_CHECK_INTERVAL_MS": "5000",
            "APEX_LOG_LEVEL": "DEBUG",
        }
    )

    assert settings.api_url == "https://apex.example.com/api"
    assert settings.websocket_url == "wss://apex.example.com/ws"
    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.supabase_anon_key == "anon"
    assert settings.api_fallback_path == "servers"
    assert settings.storage_dir == Path("/tmp/apex")
    assert settings.health_check_interval_ms == 5000
    assert settings.log_level == "DEBUG"


def test_rejects_non_numeric_interval():
    with pytest.raises(ApexConfigurationError) as excinfo:
        ApexSettings.from_env(env={"APEX_STAGGER_MS": "fast"})
    assert excinfo.value.details["key"] == "APEX_STAGGER_MS"


def test_reads_dotenv_file(tmp_path, monkeypatch):
    # Register both keys so monkeypatch removes what load_dotenv sets.
    for key in ("APEX_WEBSOCKET_URL", "APEX_MAX_RETRY_DELAY_MS"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "APEX_WEBSOCKET_URL=ws://realtime.internal:9000/ws\n"
        "APEX_MAX_RETRY_DELAY_MS=60000\n"
    )

    settings = ApexSettings.from_env(env_file=str(env_file))

    assert settings.websocket_url == "ws://realtime.internal:9000/ws"
    assert settings.max_retry_delay_ms == 60000
