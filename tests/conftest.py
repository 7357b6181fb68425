import asyncio

import pytest

from apex_genesis.backoff import BackoffConfig, BackoffPolicy
from apex_genesis.connection import (
    ConnectionEntry,
    ConnectionManager,
    FallbackStrategy,
    TransportKind,
)
from apex_genesis.probes import Prober


class FakeProber(Prober):
    """Prober whose outcome, delay and call count are controlled by the test."""

    def __init__(self, kind: TransportKind, outcome=True, delay: float = 0.0):
        self.kind = kind
        self.outcome = outcome
        self.delay = delay
        self.calls = 0

    async def attempt(self, entry):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class RecordingBackoff(BackoffPolicy):
    def __init__(self, config=None):
        super().__init__(config)
        self.delays = []

    def calculate_delay(self, retry_attempts):
        delay = super().calculate_delay(retry_attempts)
        self.delays.append(delay)
        return delay


def make_entries(**timeouts):
    defaults = {"supabase": 500, "api": 500, "websocket": 500, "local": 500}
    defaults.update(timeouts)
    return [
        ConnectionEntry(
            id="supabase",
            display_name="Supabase Database",
            transport_kind=TransportKind.HOSTED_DATASTORE,
            timeout_ms=defaults["supabase"],
            max_retry_attempts=3,
        ),
        ConnectionEntry(
            id="api",
            display_name="Backend API",
            transport_kind=TransportKind.HTTP_API,
            endpoint="http://api.test/api",
            timeout_ms=defaults["api"],
            max_retry_attempts=5,
            fallback_strategy=FallbackStrategy.MOCK,
        ),
        ConnectionEntry(
            id="websocket",
            display_name="Real-time Updates",
            transport_kind=TransportKind.WEBSOCKET,
            endpoint="ws://ws.test/ws",
            timeout_ms=defaults["websocket"],
            max_retry_attempts=10,
            fallback_strategy=FallbackStrategy.CACHE,
        ),
        ConnectionEntry(
            id="local",
            display_name="Local Storage",
            transport_kind=TransportKind.LOCAL_STORAGE,
            timeout_ms=defaults["local"],
            max_retry_attempts=1,
        ),
    ]


@pytest.fixture
def probers():
    return {kind: FakeProber(kind) for kind in TransportKind}


@pytest.fixture
def make_manager(probers):
    """Factory for managers wired to fake probers with test-sized timings."""

    def factory(
        entries=None,
        prober_table=None,
        backoff=None,
        stagger_ms=0,
        health_check_interval_ms=60000,
    ):
        return ConnectionManager(
            entries=entries if entries is not None else make_entries(),
            probers=prober_table if prober_table is not None else probers,
            backoff=backoff
            or BackoffPolicy(BackoffConfig(base_delay_ms=10000, max_delay_ms=30000)),
            stagger_ms=stagger_ms,
            health_check_interval_ms=health_check_interval_ms,
        )

    return factory


@pytest.fixture
def recording_backoff():
    return RecordingBackoff


@pytest.fixture
def fake_prober():
    return FakeProber
