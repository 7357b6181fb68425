from abc import ABC, abstractmethod
from typing import Dict

from ..connection.types import ConnectionEntry, TransportKind
from ..exceptions import ApexConfigurationError, ApexProbeError


class Prober(ABC):
    """A single liveness check against one kind of transport."""

    kind: TransportKind

    @abstractmethod
    async def attempt(self, entry: ConnectionEntry) -> bool:
        """
        Probe the transport behind ``entry``.

        Returns True when the transport is alive. Implementations may return
        False or raise; the manager treats both as a failed attempt. The
        entry timeout is enforced by the caller, probers only pass it down to
        their transport.
        """

    def require_endpoint(self, entry: ConnectionEntry) -> str:
        if not entry.endpoint:
            raise ApexProbeError(
                f"No endpoint configured for {entry.display_name}",
                transport_kind=self.kind.value,
                connection_id=entry.id,
            )
        return entry.endpoint


ProberTable = Dict[TransportKind, Prober]


def build_prober_table(*probers: Prober) -> ProberTable:
    table: ProberTable = {}
    for prober in probers:
        if prober.kind in table:
            raise ApexConfigurationError(
                f"Duplicate prober for transport kind {prober.kind.value}"
            )
        table[prober.kind] = prober
    return table
