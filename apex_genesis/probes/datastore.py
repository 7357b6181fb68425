from typing import Optional

import httpx

from .base import Prober
from ..config import DEFAULT_HEALTH_TABLE
from ..connection.types import ConnectionEntry, TransportKind
from ..exceptions import ApexProbeError


class SupabaseProber(Prober):
    """
    Checks the hosted Supabase datastore with a minimal read-only PostgREST
    query: ``select count from <table> limit 1``.
    """

    kind = TransportKind.HOSTED_DATASTORE

    def __init__(
        self,
        url: str,
        anon_key: str,
        table: str = DEFAULT_HEALTH_TABLE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.table = table
        self.transport = transport

    def _headers(self):
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
            "Accept": "application/json",
        }

    async def attempt(self, entry: ConnectionEntry) -> bool:
        if not self.url:
            raise ApexProbeError(
                "Supabase URL is not configured",
                transport_kind=self.kind.value,
                connection_id=entry.id,
            )

        async with httpx.AsyncClient(
            timeout=entry.timeout, transport=self.transport
        ) as client:
            response = await client.get(
                f"{self.url}/rest/v1/{self.table}",
                headers=self._headers(),
                params={"select": "count", "limit": "1"},
            )

        if not response.is_success:
            raise ApexProbeError(
                f"Supabase query on {self.table} failed with {response.status_code}",
                transport_kind=self.kind.value,
                status_code=response.status_code,
                connection_id=entry.id,
            )
        return True
