"""Graceful shutdown for open room connections.

Every accepted WebSocket is tracked here for as long as it is served,
independent of which room it joined. On SIGTERM the coordinator flips to
shutting down, refuses new sockets and tells every tracked one that the
server is restarting, so clients show a "reconnecting" notice instead of a
raw network error. A participant who reconnects within the grace window of
the restarted server simply rejoins.
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from .rooms import Connection

logger = logging.getLogger(__name__)

SHUTDOWN_NOTICE = "Server is restarting, reconnecting shortly"


class ShutdownCoordinator:
    """Shutdown flag plus the set of connections that must be told about it."""

    def __init__(self) -> None:
        self._shutting_down = False
        self._connections: list[Connection] = []

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def active_connection_count(self) -> int:
        return len(self._connections)

    @contextmanager
    def track(self, connection: Connection) -> Iterator[None]:
        """Keep ``connection`` on the notify list while the block runs."""
        self._connections.append(connection)
        try:
            yield
        finally:
            if connection in self._connections:
                self._connections.remove(connection)

    def initiate_shutdown(self) -> None:
        """Mark the server as going down. New sockets are refused from now on."""
        if self._shutting_down:
            return
        self._shutting_down = True
        logger.info(
            "Shutdown initiated. Active connections: %d", len(self._connections)
        )

    async def notify_connections(self) -> int:
        """Send the shutdown notice to every tracked connection.

        Returns:
            Number of connections the notice reached
        """
        message = self.shutdown_message()
        reached = 0
        for connection in list(self._connections):
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning(
                    "Could not send shutdown notice to %s: %s", connection.user_id, e
                )
            else:
                reached += 1
        logger.info("Shutdown notice sent to %d connections", reached)
        return reached

    def shutdown_message(self) -> str:
        """Format the server_shutdown protocol message."""
        return json.dumps({"type": "server_shutdown", "message": SHUTDOWN_NOTICE})
