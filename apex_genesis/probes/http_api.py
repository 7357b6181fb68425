from typing import Dict, Optional

import httpx

from .base import Prober
from ..config import DEFAULT_API_FALLBACK_PATH
from ..connection.types import ConnectionEntry, TransportKind
from ..exceptions import ApexProbeError
from ..logging_config import get_logger

logger = get_logger(__name__)

# The fallback resource sits behind auth; a 401 still proves the server is up.
FALLBACK_HEALTHY_STATUSES = {401}


class HttpApiProber(Prober):
    """
    Checks the backend API.

    ``GET <endpoint>/health`` answering 2xx is healthy. When that request fails
    for any reason other than a timeout, ``GET <endpoint>/<fallback_path>`` is
    tried, where 2xx or 401 count as healthy.
    """

    kind = TransportKind.HTTP_API

    def __init__(
        self,
        fallback_path: str = DEFAULT_API_FALLBACK_PATH,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.fallback_path = fallback_path.strip("/")
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.transport = transport

    def _client(self, entry: ConnectionEntry) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=entry.timeout, transport=self.transport, headers=self.headers
        )

    async def attempt(self, entry: ConnectionEntry) -> bool:
        base_url = self.require_endpoint(entry).rstrip("/")

        async with self._client(entry) as client:
            try:
                response = await client.get(f"{base_url}/health")
                if response.is_success:
                    return True
                logger.debug(
                    f"{entry.id}: health endpoint answered {response.status_code}, trying fallback"
                )
            except httpx.TimeoutException:
                raise
            except httpx.HTTPError as e:
                logger.debug(f"{entry.id}: health request failed ({e!r}), trying fallback")

            response = await client.get(f"{base_url}/{self.fallback_path}")

        if response.is_success or response.status_code in FALLBACK_HEALTHY_STATUSES:
            return True

        raise ApexProbeError(
            f"{entry.display_name} answered {response.status_code}",
            transport_kind=self.kind.value,
            status_code=response.status_code,
            connection_id=entry.id,
        )
