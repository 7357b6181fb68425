import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ApexConfigurationError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_WEBSOCKET_URL = "ws://localhost:8080/ws"
DEFAULT_HEALTH_TABLE = "mcp_servers"
DEFAULT_API_FALLBACK_PATH = "adapters"
DEFAULT_STORAGE_DIR = "~/.apex_genesis/storage"

HEALTH_CHECK_INTERVAL = 30000  # 30 seconds
STAGGER_DELAY = 100
BASE_RETRY_DELAY = 2000  # 2 seconds
MAX_RETRY_DELAY = 30000  # 30 seconds


def _read_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ApexConfigurationError(
            f"{key} must be an integer number of milliseconds, got {raw!r}",
            code="invalid_setting",
            details={"key": key, "value": raw},
        )


@dataclass
class ApexSettings:
    api_url: str = DEFAULT_API_URL
    websocket_url: str = DEFAULT_WEBSOCKET_URL
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_health_table: str = DEFAULT_HEALTH_TABLE
    api_fallback_path: str = DEFAULT_API_FALLBACK_PATH
    storage_dir: Path = field(
        default_factory=lambda: Path(DEFAULT_STORAGE_DIR).expanduser()
    )
    health_check_interval_ms: int = HEALTH_CHECK_INTERVAL
    stagger_ms: int = STAGGER_DELAY
    base_retry_delay_ms: int = BASE_RETRY_DELAY
    max_retry_delay_ms: int = MAX_RETRY_DELAY
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "ApexSettings":
        """
        Build settings from the process environment.

        :param env_file: Optional path to a ``.env`` file. When omitted,
                         python-dotenv searches for one from the working directory.
                         Values already present in the environment win.
        :param env: Mapping to read instead of ``os.environ``; ``.env`` loading
                    is skipped when given.
        :return: ApexSettings
        :raises ApexConfigurationError: if a numeric setting cannot be parsed.
        """
        if env is None:
            load_dotenv(dotenv_path=env_file)
            env = os.environ

        settings = cls(
            api_url=env.get("APEX_API_URL", DEFAULT_API_URL).rstrip("/"),
            websocket_url=env.get("APEX_WEBSOCKET_URL", DEFAULT_WEBSOCKET_URL),
            supabase_url=env.get("SUPABASE_URL", "").rstrip("/"),
            supabase_anon_key=env.get("SUPABASE_ANON_KEY", ""),
            supabase_health_table=env.get(
                "APEX_SUPABASE_HEALTH_TABLE", DEFAULT_HEALTH_TABLE
            ),
            api_fallback_path=env.get(
                "APEX_API_FALLBACK_PATH", DEFAULT_API_FALLBACK_PATH
            ).strip("/"),
            storage_dir=Path(
                env.get("APEX_STORAGE_DIR", DEFAULT_STORAGE_DIR)
            ).expanduser(),
            health_check_interval_ms=_read_int(
                env, "APEX_HEALTH_CHECK_INTERVAL_MS", HEALTH_CHECK_INTERVAL
            ),
            stagger_ms=_read_int(env, "APEX_STAGGER_MS", STAGGER_DELAY),
            base_retry_delay_ms=_read_int(
                env, "APEX_BASE_RETRY_DELAY_MS", BASE_RETRY_DELAY
            ),
            max_retry_delay_ms=_read_int(
                env, "APEX_MAX_RETRY_DELAY_MS", MAX_RETRY_DELAY
            ),
            log_level=env.get("APEX_LOG_LEVEL", "INFO"),
        )

        if not settings.supabase_url:
            logger.warning(
                "SUPABASE_URL is not set; the hosted datastore check will report errors"
            )

        return settings
