from .base import Prober, ProberTable, build_prober_table
from .datastore import SupabaseProber
from .http_api import HttpApiProber
from .local_storage import FileKeyValueStore, LocalStorageProber
from .websocket import WebSocketProber

__all__ = [
    "Prober",
    "ProberTable",
    "build_prober_table",
    "SupabaseProber",
    "HttpApiProber",
    "WebSocketProber",
    "FileKeyValueStore",
    "LocalStorageProber",
]
