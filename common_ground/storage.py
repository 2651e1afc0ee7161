"""In-memory storage for room sessions.

Sessions live only as long as their room is active. Nothing is written to
disk and there is no schema beyond the ``Session`` value itself.
"""

import logging

from .session import Session

logger = logging.getLogger(__name__)


class RoomStore:
    """Key-value store of the current Session per room id."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, room_id: str) -> Session | None:
        """Load the current session for a room.

        Args:
            room_id: Room identifier

        Returns:
            The stored session or None if the room has none
        """
        return self._sessions.get(room_id)

    def put(self, room_id: str, session: Session) -> None:
        """Replace the session stored for a room.

        Args:
            room_id: Room identifier
            session: The complete new session value
        """
        self._sessions[room_id] = session

    def delete(self, room_id: str) -> bool:
        """Discard a room's session.

        Returns:
            True if a session was removed, False if none was stored
        """
        removed = self._sessions.pop(room_id, None) is not None
        if removed:
            logger.info("Discarded session for room %s", room_id)
        return removed

    def room_ids(self) -> list[str]:
        """List rooms that currently hold a session."""
        return list(self._sessions)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
