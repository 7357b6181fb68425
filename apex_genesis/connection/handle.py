from typing import Callable, Dict, List, Optional, Union

from .manager import ConnectAttempt, ConnectionManager
from .types import ConnectionStatus, Unsubscribe

ChangeCallback = Callable[[str, str], None]


class ConnectionHandle:
    """
    A consumer's view of the manager, bound to one connection or to all of them.

    Registers its own subscriptions on creation and drops them on ``close()``,
    so a UI component can hold one of these for exactly as long as it lives.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        connection_id: Optional[str] = None,
        on_change: Optional[ChangeCallback] = None,
    ):
        self._manager = manager
        self.connection_id = connection_id
        self._on_change = on_change
        self._unsubscribes: List[Unsubscribe] = []

        watched = (
            [connection_id]
            if connection_id is not None
            else [entry.id for entry in manager.entries]
        )
        for watched_id in watched:
            self._unsubscribes.append(
                manager.on_connection_change(watched_id, self._callback_for(watched_id))
            )

    def _callback_for(self, connection_id: str):
        def callback(status: str):
            if self._on_change is not None:
                self._on_change(connection_id, status)

        return callback

    @property
    def status(self) -> ConnectionStatus:
        if self.connection_id is None:
            return self._manager.overall_status()
        return self._manager.get_connection_status(self.connection_id)

    @property
    def statuses(self) -> Dict[str, ConnectionStatus]:
        return self._manager.get_all_connection_statuses()

    @property
    def is_online(self) -> bool:
        return self._manager.is_online

    @property
    def is_any_connected(self) -> bool:
        return self._manager.is_any_connected()

    def is_connected(self, connection_id: Optional[str] = None) -> bool:
        target = connection_id or self.connection_id
        if target is None:
            return self._manager.is_any_connected()
        return self._manager.is_connected(target)

    def reconnect(
        self, connection_id: Optional[str] = None
    ) -> Union[Optional[ConnectAttempt], List[ConnectAttempt]]:
        return self._manager.force_reconnect(connection_id or self.connection_id)

    def close(self):
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
