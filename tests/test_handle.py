import pytest

from apex_genesis.connection import ConnectionHandle, ConnectionStatus, TransportKind


class TestConnectionHandle:
    @pytest.mark.asyncio
    async def test_single_connection_view(self, make_manager):
        manager = make_manager()
        changes = []
        handle = ConnectionHandle(
            manager, "api", on_change=lambda cid, status: changes.append((cid, status))
        )

        assert handle.status == ConnectionStatus.DISCONNECTED
        await handle.reconnect()

        assert handle.status == ConnectionStatus.CONNECTED
        assert handle.is_connected()
        assert handle.is_online
        assert changes == [("api", "connecting"), ("api", "connected")]

    @pytest.mark.asyncio
    async def test_all_connections_view(self, make_manager, probers):
        probers[TransportKind.WEBSOCKET].outcome = False
        manager = make_manager()
        changes = []

        with ConnectionHandle(
            manager, on_change=lambda cid, status: changes.append(cid)
        ) as handle:
            for task in handle.reconnect():
                await task

            assert handle.is_any_connected
            assert handle.status == ConnectionStatus.CONNECTED
            assert handle.statuses["websocket"] == ConnectionStatus.ERROR
            assert handle.is_connected("api")
            assert not handle.is_connected("websocket")
            assert set(changes) == {"supabase", "api", "websocket", "local"}

        assert all(not entry.subscribers for entry in manager.entries)

    @pytest.mark.asyncio
    async def test_close_stops_callbacks(self, make_manager):
        manager = make_manager()
        changes = []
        handle = ConnectionHandle(
            manager, "local", on_change=lambda cid, status: changes.append(status)
        )
        handle.close()

        await manager.connect("local")

        assert changes == []
        assert manager.is_connected("local")
