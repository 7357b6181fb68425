from .backoff import *
from .config import *
from .connection import *
from .exceptions import *
from .logging_config import *
from .registry import *

__all__ = [
    "ApexSettings",
    "BackoffConfig",
    "BackoffPolicy",
    "ConnectionManager",
    "ConnectionHandle",
    "ConnectionEntry",
    "ConnectionStatus",
    "EnvironmentEvent",
    "FallbackStrategy",
    "TransportKind",
    "ApexError",
    "ApexConnectionError",
    "ApexProbeError",
    "ApexTimeoutError",
    "ApexConfigurationError",
    "create_connection_manager",
    "build_default_entries",
    "build_default_probers",
    "setup_logging",
    "get_logger",
]
__version__ = "0.1.0"
