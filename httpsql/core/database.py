import logging
import threading
from typing import Dict, Optional

from fastapi import Request

from httpsql.core.drivers import Connection, Driver, get_driver
from httpsql.core.exceptions import ConnectionRefused


class ConnectionHandle:
    """A live driver connection owned by the ConnectionManager for one alias."""

    def __init__(self, alias: str, driver: Driver, connection: Connection):
        self.alias = alias
        self.driver = driver
        self.connection = connection

    async def ping(self) -> None:
        await self.connection.ping()

    async def close(self) -> None:
        await self.connection.close()


class ConnectionManager:
    """
    Keeps at most one handle per alias.

    Handles are opened on first use and probed on every later use. A handle
    that fails its probe is dropped, so the next request opens a new one.
    Concurrent requests may race to replace a handle; the table itself only
    ever sees whole-entry swaps.
    """

    def __init__(self):
        self._handles: Dict[str, ConnectionHandle] = {}
        self._lock = threading.Lock()

    def cached(self, alias: str) -> Optional[ConnectionHandle]:
        with self._lock:
            return self._handles.get(alias)

    async def acquire(
        self, alias: str, driver_name: str, connection_string: str
    ) -> ConnectionHandle:
        handle = self.cached(alias)

        if handle is None:
            return await self._open(alias, driver_name, connection_string)

        try:
            await handle.ping()
        except Exception as error:
            logging.warning(f"{alias}: liveness probe failed: {error}")
            self._discard(alias, handle)
            await self._release(handle)
            raise ConnectionRefused(str(error)) from error

        return handle

    async def _open(
        self, alias: str, driver_name: str, connection_string: str
    ) -> ConnectionHandle:
        driver = get_driver(driver_name)

        try:
            connection = await driver.open(connection_string)
        except Exception as error:
            logging.warning(f"{alias}: couldn't open {driver_name} connection: {error}")
            raise ConnectionRefused(str(error)) from error

        handle = ConnectionHandle(alias, driver, connection)
        with self._lock:
            # Another request got there first, keep its handle
            cached = self._handles.get(alias)
            if cached is None:
                self._handles[alias] = handle

        if cached is not None:
            await self._release(handle)
            return cached

        logging.info(f"{alias}: opened {driver_name} connection")
        return handle

    def _discard(self, alias: str, handle: ConnectionHandle) -> None:
        # Leave the slot alone if another request already replaced the handle
        with self._lock:
            if self._handles.get(alias) is handle:
                del self._handles[alias]

    async def _release(self, handle: ConnectionHandle) -> None:
        try:
            await handle.close()
        except Exception as error:
            logging.warning(f"{handle.alias}: error while closing connection: {error}")

    async def close(self) -> None:
        """Release every cached handle (application shutdown)."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()

        for handle in handles:
            await self._release(handle)


# The manager is created in the app lifespan, routes reach it through here
def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connections
