"""
Connection Monitoring Example

This example starts the connection manager with the standard dashboard
connections, prints every status change, simulates the network dropping and
coming back, and prints a final snapshot.

Configure endpoints through the environment or a .env file:
APEX_API_URL, APEX_WEBSOCKET_URL, SUPABASE_URL, SUPABASE_ANON_KEY.
"""

import asyncio
import json

from apex_genesis import (
    ApexConfigurationError,
    ApexSettings,
    ConnectionHandle,
    EnvironmentEvent,
    create_connection_manager,
    setup_logging,
)


async def monitor_connections():
    settings = ApexSettings.from_env()
    setup_logging(settings.log_level)

    manager = create_connection_manager(settings)
    handle = ConnectionHandle(
        manager,
        on_change=lambda connection_id, status: print(f"{connection_id}: {status}"),
    )

    try:
        await manager.start()
        await asyncio.sleep(5)

        # Simulate the network dropping out and coming back
        manager.handle(EnvironmentEvent.OFFLINE)
        print(f"Online: {handle.is_online}, overall: {handle.status.value}")
        manager.handle(EnvironmentEvent.ONLINE)
        await asyncio.sleep(5)

        print(json.dumps(manager.snapshot(), indent=2))
    finally:
        handle.close()
        await manager.stop()


async def main():
    try:
        await monitor_connections()
    except ApexConfigurationError as e:
        print(f"Configuration error: {e}")


if __name__ == "__main__":
    asyncio.run(main())
