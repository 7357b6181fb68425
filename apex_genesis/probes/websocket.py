import websockets

from .base import Prober
from ..connection.types import ConnectionEntry, TransportKind


class WebSocketProber(Prober):
    """
    Checks a real-time channel by completing a websocket handshake. The socket
    is closed right away; this is a liveness probe, not a subscription.
    """

    kind = TransportKind.WEBSOCKET

    def __init__(self, close_timeout: float = 1.0):
        self.close_timeout = close_timeout

    async def attempt(self, entry: ConnectionEntry) -> bool:
        url = self.require_endpoint(entry)

        async with websockets.connect(
            url,
            open_timeout=entry.timeout,
            close_timeout=self.close_timeout,
            ping_interval=None,
        ):
            return True
