import asyncio
import concurrent.futures
import time
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
    Union,
)

from .types import (
    OFFLINE_NOTIFICATION,
    ConnectionEntry,
    ConnectionStatus,
    ConnectionStatusCallback,
    EnvironmentEvent,
    Subscription,
    TransportKind,
    Unsubscribe,
)
from ..backoff import BackoffPolicy
from ..config import HEALTH_CHECK_INTERVAL, STAGGER_DELAY
from ..exceptions import (
    ApexConfigurationError,
    ApexProbeError,
    ApexTimeoutError,
)
from ..logging_config import get_logger

if TYPE_CHECKING:
    from ..probes.base import Prober

logger = get_logger(__name__)

ConnectAttempt = Union[asyncio.Task, concurrent.futures.Future]

# Kinds that need an address; the others use fixed logic inside their prober.
ENDPOINT_KINDS = {TransportKind.HTTP_API, TransportKind.WEBSOCKET}


class ConnectionManager:
    """
    Tracks liveness of a fixed set of logical connections.

    Each entry is probed once after start (staggered), again on every
    health-check sweep, and after each failure following a backoff delay.
    Status changes are pushed to per-entry subscribers. No public method
    raises into its caller; failures surface as ``error`` statuses and logs.
    """

    def __init__(
        self,
        entries: Iterable[ConnectionEntry],
        probers: Mapping[TransportKind, "Prober"],
        backoff: Optional[BackoffPolicy] = None,
        stagger_ms: int = STAGGER_DELAY,
        health_check_interval_ms: int = HEALTH_CHECK_INTERVAL,
    ):
        self._entries: Dict[str, ConnectionEntry] = {}
        self._probers: Dict[TransportKind, "Prober"] = dict(probers)
        self._backoff = backoff or BackoffPolicy()

        for entry in entries:
            self._register(entry)

        self._stagger = max(0, stagger_ms) / 1000.0
        self._health_check_interval = health_check_interval_ms / 1000.0
        if self._health_check_interval <= 0:
            raise ApexConfigurationError("health_check_interval_ms must be positive")

        # Lifecycle management
        self.is_running = False
        self.is_online = True
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        # Background work
        self._health_check_task: Optional[asyncio.Task] = None
        self._startup_handles: List[asyncio.TimerHandle] = []
        self._probe_tasks: Set[asyncio.Task] = set()

        logger.info(
            f"ConnectionManager initialized with connections: {', '.join(self._entries)}"
        )

    def _register(self, entry: ConnectionEntry):
        if entry.id in self._entries:
            raise ApexConfigurationError(f"Duplicate connection id: {entry.id}")
        if entry.transport_kind not in self._probers:
            raise ApexConfigurationError(
                f"No prober registered for transport kind {entry.transport_kind.value}"
            )
        if entry.transport_kind in ENDPOINT_KINDS and not entry.endpoint:
            raise ApexConfigurationError(
                f"Connection {entry.id} ({entry.transport_kind.value}) needs an endpoint"
            )
        if entry.timeout_ms <= 0:
            raise ApexConfigurationError(
                f"Connection {entry.id} needs a positive timeout_ms"
            )
        self._entries[entry.id] = entry

    @property
    def backoff(self) -> BackoffPolicy:
        return self._backoff

    @property
    def entries(self) -> List[ConnectionEntry]:
        return list(self._entries.values())

    # Lifecycle

    async def start(self):
        if self.is_running:
            return

        self.is_running = True
        self._loop = asyncio.get_running_loop()
        logger.info("Starting ConnectionManager")

        for index, connection_id in enumerate(self._entries):
            handle = self._loop.call_later(
                index * self._stagger, self._spawn_connect, connection_id
            )
            self._startup_handles.append(handle)

        self._health_check_task = asyncio.create_task(self._health_check_loop())

    async def stop(self):
        tasks = self._teardown()

        for task in tasks:
            if not task.done():
                try:
                    await asyncio.wait_for(task, timeout=2.0)
                except (asyncio.CancelledError, asyncio.TimeoutError):
                    pass

    def _teardown(self) -> List[asyncio.Task]:
        if self.is_running:
            logger.info("Stopping ConnectionManager")
        self.is_running = False

        for handle in self._startup_handles:
            handle.cancel()
        self._startup_handles.clear()

        for entry in self._entries.values():
            entry.cancel_pending()

        tasks = list(self._probe_tasks)
        if self._health_check_task is not None:
            tasks.append(self._health_check_task)
            self._health_check_task = None
        self._probe_tasks.clear()

        for task in tasks:
            task.cancel()
        return tasks

    # Commands

    async def connect(self, connection_id: str) -> bool:
        entry = self._entries.get(connection_id)
        if entry is None:
            logger.warning(f"Cannot connect unknown connection: {connection_id}")
            return False

        entry.cancel_pending()
        self._set_status(entry, ConnectionStatus.CONNECTING)

        prober = self._probers[entry.transport_kind]
        started = time.perf_counter()

        try:
            alive = await asyncio.wait_for(prober.attempt(entry), timeout=entry.timeout)
            if not alive:
                raise ApexProbeError(
                    f"Failed to connect to {entry.display_name}",
                    transport_kind=entry.transport_kind.value,
                    connection_id=entry.id,
                )
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            error = ApexTimeoutError(
                f"{entry.display_name} did not answer within {entry.timeout_ms}ms",
                timeout_duration=entry.timeout,
            )
            self._handle_failure(entry, error, started)
            return False
        except Exception as e:
            self._handle_failure(entry, e, started)
            return False

        entry.record_success(self._elapsed_ms(started))
        entry.cancel_pending()
        self._set_status(entry, ConnectionStatus.CONNECTED)
        logger.info(
            f"Connected to {entry.display_name} in {entry.last_latency_ms:.1f}ms"
        )
        return True

    def force_reconnect(
        self, connection_id: Optional[str] = None
    ) -> Union[Optional[ConnectAttempt], List[ConnectAttempt]]:
        """
        Drop any pending retry and probe right away.

        With no ``connection_id`` every entry is reconnected and the list of
        started attempts is returned. An attempt already in flight is not
        cancelled; whichever finishes last sets the status.

        Called on the manager's loop this returns ``asyncio.Task`` objects.
        Called from another thread while the manager runs, the attempts are
        handed to its loop and ``concurrent.futures.Future`` objects come
        back. With no usable loop nothing is started and ``None`` (or an
        empty list) is returned.
        """
        if connection_id is None:
            attempts = [self._force(entry) for entry in self._entries.values()]
            return [attempt for attempt in attempts if attempt is not None]

        entry = self._entries.get(connection_id)
        if entry is None:
            logger.warning(f"Cannot reconnect unknown connection: {connection_id}")
            return None
        return self._force(entry)

    def force_reconnect_all(self) -> List[ConnectAttempt]:
        return self.force_reconnect()

    def _force(self, entry: ConnectionEntry) -> Optional[ConnectAttempt]:
        # Off-loop callers leave the timer alone; connect() cancels it on the loop.
        if not self._needs_handoff():
            entry.cancel_pending()
        return self._spawn_connect(entry.id)

    def check_all_connections(self) -> List[ConnectAttempt]:
        """Probe every entry that is not already mid-attempt."""
        attempts = []
        for entry in self._entries.values():
            if entry.status == ConnectionStatus.CONNECTING:
                continue
            if not self._can_probe(entry):
                continue
            attempt = self._spawn_connect(entry.id)
            if attempt is not None:
                attempts.append(attempt)
        return attempts

    def handle(self, event: Union[EnvironmentEvent, str]):
        """
        Single entry point for environment signals.

        Safe to call from any thread: when the manager runs on a loop other
        than the caller's, the event is forwarded to that loop.
        """
        try:
            event = EnvironmentEvent(event)
        except ValueError:
            logger.warning(f"Ignoring unknown environment event: {event}")
            return

        if self._needs_handoff():
            self._loop.call_soon_threadsafe(self._dispatch, event)
            return
        self._dispatch(event)

    def _dispatch(self, event: EnvironmentEvent):
        logger.debug(f"Environment event: {event.value}")

        if event == EnvironmentEvent.OFFLINE:
            logger.info("Network offline, marking remote connections disconnected")
            self.is_online = False
            self._handle_offline()
        elif event == EnvironmentEvent.ONLINE:
            logger.info("Network back online, reconnecting")
            self.is_online = True
            self.force_reconnect()
        elif event == EnvironmentEvent.VISIBLE:
            self.check_all_connections()
        elif event == EnvironmentEvent.TEARDOWN:
            self._teardown()

    def _handle_offline(self):
        for entry in self._entries.values():
            if entry.transport_kind == TransportKind.LOCAL_STORAGE:
                continue
            self._set_status(
                entry, ConnectionStatus.DISCONNECTED, notification=OFFLINE_NOTIFICATION
            )

    # Subscriptions

    def on_connection_change(
        self, connection_id: str, callback: ConnectionStatusCallback
    ) -> Unsubscribe:
        entry = self._entries.get(connection_id)
        if entry is None:
            logger.warning(f"Cannot subscribe to unknown connection: {connection_id}")
            return lambda: None

        subscription = Subscription(callback)
        entry.subscribers.append(subscription)

        def unsubscribe():
            subscription.active = False
            if subscription in entry.subscribers:
                entry.subscribers.remove(subscription)

        return unsubscribe

    async def wait_for_status(
        self,
        connection_id: str,
        *statuses: Union[ConnectionStatus, str],
        timeout: Optional[float] = None,
    ) -> bool:
        entry = self._entries.get(connection_id)
        if entry is None:
            return False

        targets = {
            status.value if isinstance(status, ConnectionStatus) else status
            for status in statuses
        }
        if entry.status.value in targets:
            return True

        reached = asyncio.Event()

        def on_change(status: str):
            if status in targets:
                reached.set()

        unsubscribe = self.on_connection_change(connection_id, on_change)
        try:
            await asyncio.wait_for(reached.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            unsubscribe()

    # Queries

    def get_entry(self, connection_id: str) -> Optional[ConnectionEntry]:
        return self._entries.get(connection_id)

    def get_connection_status(self, connection_id: str) -> ConnectionStatus:
        entry = self._entries.get(connection_id)
        if entry is None:
            return ConnectionStatus.DISCONNECTED
        return entry.status

    def get_all_connection_statuses(self) -> Dict[str, ConnectionStatus]:
        return {
            connection_id: entry.status
            for connection_id, entry in self._entries.items()
        }

    def is_connected(self, connection_id: str) -> bool:
        return self.get_connection_status(connection_id) == ConnectionStatus.CONNECTED

    def is_any_connected(self) -> bool:
        return any(
            entry.status == ConnectionStatus.CONNECTED
            for entry in self._entries.values()
        )

    def overall_status(self) -> ConnectionStatus:
        if self.is_online and self.is_any_connected():
            return ConnectionStatus.CONNECTED
        return ConnectionStatus.ERROR

    def snapshot(self) -> Dict[str, Any]:
        return {
            "online": self.is_online,
            "running": self.is_running,
            "overall": self.overall_status().value,
            "connections": [entry.snapshot() for entry in self._entries.values()],
        }

    # Internals

    @staticmethod
    def _current_loop() -> Optional[asyncio.AbstractEventLoop]:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def _needs_handoff(self) -> bool:
        """True when the manager's loop is running and the caller is not on it."""
        return (
            self._loop is not None
            and self._loop.is_running()
            and not self._loop.is_closed()
            and self._current_loop() is not self._loop
        )

    def _can_probe(self, entry: ConnectionEntry) -> bool:
        return self.is_online or entry.transport_kind == TransportKind.LOCAL_STORAGE

    def _spawn_connect(self, connection_id: str) -> Optional[ConnectAttempt]:
        if self._needs_handoff():
            return asyncio.run_coroutine_threadsafe(
                self.connect(connection_id), self._loop
            )

        loop = self._current_loop()
        if loop is None:
            logger.warning(
                f"No running event loop, cannot start a connection attempt for {connection_id}"
            )
            return None

        task = loop.create_task(self.connect(connection_id))
        self._probe_tasks.add(task)
        task.add_done_callback(self._probe_tasks.discard)
        return task

    def _handle_failure(self, entry: ConnectionEntry, error: Exception, started: float):
        entry.record_failure(str(error) or type(error).__name__, self._elapsed_ms(started))
        self._set_status(entry, ConnectionStatus.ERROR)
        logger.warning(
            f"Connection failed for {entry.id} ({entry.consecutive_failures} in a row): {entry.last_error}"
        )
        self._schedule_retry(entry)

    def _schedule_retry(self, entry: ConnectionEntry):
        if not self.is_running or self._loop is None:
            return

        entry.cancel_pending()
        delay = self._backoff.calculate_delay(entry.max_retry_attempts)
        entry.retry_handle = self._loop.call_later(delay, self._fire_retry, entry.id)
        logger.info(f"Retrying {entry.id} in {delay:.2f}s")

    def _fire_retry(self, connection_id: str):
        entry = self._entries[connection_id]
        entry.retry_handle = None
        if not self.is_running or entry.status == ConnectionStatus.CONNECTING:
            return
        # Going back online reconnects everything, so the retry is dropped.
        if not self._can_probe(entry):
            logger.debug(f"Skipping retry for {connection_id} while offline")
            return
        self._spawn_connect(connection_id)

    async def _health_check_loop(self):
        try:
            while self.is_running:
                await asyncio.sleep(self._health_check_interval)
                if not self.is_running:
                    break
                self.check_all_connections()
        except asyncio.CancelledError:
            pass

    def _set_status(
        self,
        entry: ConnectionEntry,
        new_status: ConnectionStatus,
        notification: Optional[str] = None,
    ):
        old_status = entry.status
        entry.status = new_status

        if old_status != new_status:
            logger.debug(
                f"Connection {entry.id} state changed: {old_status.value} -> {new_status.value}"
            )

        self._notify(entry, notification or new_status.value)

    def _notify(self, entry: ConnectionEntry, status: str):
        for subscription in list(entry.subscribers):
            if not subscription.active:
                continue
            try:
                subscription.callback(status)
            except Exception as e:
                logger.error(f"Error in connection callback for {entry.id}", exc_info=e)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000.0
