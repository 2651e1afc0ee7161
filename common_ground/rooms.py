"""Room transport: connections, presence and serialised session updates.

Each ``Room`` owns its connection list, its pending removals and a lock that
serialises every session transition for that room. Rooms never share mutable
state, so different rooms progress independently. The ``RoomRegistry`` maps
room ids to rooms and discards a room once nobody is connected and no
removal is pending.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Protocol

from fastapi import WebSocket
from pydantic import ValidationError

from .config import PRESENCE_GRACE_SECONDS
from .presence_scheduler import PresenceScheduler
from .protocol import (
    AddStatementMessage,
    GetSessionMessage,
    VoteResponseMessage,
    error_message,
    parse_client_message,
    session_state_message,
)
from .session import (
    Action,
    AddStatement,
    PresenceChange,
    RespondToStatement,
    Session,
    SessionActionError,
    UpdateUnresolvedStatements,
    initialize_session,
    session_reducer,
)
from .storage import RoomStore
from .telemetry import trace_room_action

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """A live client connection bound to one participant id."""

    user_id: str

    async def send_text(self, data: str) -> None: ...


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the Connection protocol."""

    def __init__(self, websocket: WebSocket, user_id: str) -> None:
        self.websocket = websocket
        self.user_id = user_id

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


def _describe(text: str, limit: int = 50) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class Room:
    """One active room and its serialised session."""

    def __init__(
        self,
        room_id: str,
        store: RoomStore,
        grace_seconds: float = PRESENCE_GRACE_SECONDS,
        on_idle: Callable[["Room"], None] | None = None,
    ) -> None:
        self.room_id = room_id
        self.store = store
        self.connections: list[Connection] = []
        self.removals = PresenceScheduler(grace_seconds)
        self._on_idle = on_idle
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Session:
        """The current session, empty if the room has not stored one yet."""
        return self.store.get(self.room_id) or initialize_session()

    def participant_ids(self) -> list[str]:
        """Distinct ids of connected participants, in connection order."""
        return list(dict.fromkeys(c.user_id for c in self.connections))

    @property
    def is_idle(self) -> bool:
        return not self.connections and not self.removals.pending_ids

    def _apply(self, action: Action) -> tuple[Session, bool]:
        """Run one transition and persist it. Caller must hold the room lock."""
        current = self.store.get(self.room_id)
        if current is None:
            current = initialize_session()
            self.store.put(self.room_id, current)

        actor = getattr(action, "user_id", None) or getattr(action, "created_by", None)
        with trace_room_action(self.room_id, action.type.value, actor):
            updated = session_reducer(current, action)

        changed = updated != current
        if changed:
            self.store.put(self.room_id, updated)
        return updated, changed

    async def dispatch(self, action: Action) -> tuple[Session, bool]:
        """Apply an action and broadcast the result if it changed anything.

        Returns:
            (session, changed) after the transition

        Raises:
            SessionActionError: The action was rejected; nothing was stored
        """
        async with self._lock:
            session, changed = self._apply(action)
            if changed:
                await self.broadcast(session_state_message(session))
        return session, changed

    async def connect(self, connection: Connection) -> Session:
        """Register a connection and bring it up to date.

        Cancels any pending removal for the participant, adds them to every
        unresolved statement and sends them the current snapshot.
        """
        user_id = connection.user_id
        if self.removals.cancel(user_id):
            logger.info("Cancelled pending removal for %s (quick reconnect)", user_id)

        self.connections.append(connection)
        logger.info(
            "%s connected to room %s (%d connections)",
            user_id, self.room_id, len(self.connections),
        )

        async with self._lock:
            session = self.store.get(self.room_id)
            if session is None:
                session = initialize_session()
                self.store.put(self.room_id, session)
                logger.info("Initialized new session for room %s", self.room_id)
            elif session.statements:
                session, changed = self._apply(
                    UpdateUnresolvedStatements(user_id=user_id, change=PresenceChange.ADD)
                )
                if changed:
                    logger.info("Added %s to unresolved statements", user_id)
                    await self.broadcast(session_state_message(session), exclude=connection)
            await self._send(connection, session_state_message(session))
        return session

    async def disconnect(self, connection: Connection) -> None:
        """Drop a connection and start the grace window if it was the last one."""
        if connection in self.connections:
            self.connections.remove(connection)

        user_id = connection.user_id
        logger.info("%s disconnected from room %s", user_id, self.room_id)

        if user_id in self.participant_ids():
            return
        self.removals.schedule(user_id, self._remove_participant)

    async def _remove_participant(self, user_id: str) -> None:
        logger.info("Grace window expired, removing %s from unresolved statements", user_id)
        _, changed = await self.dispatch(
            UpdateUnresolvedStatements(user_id=user_id, change=PresenceChange.REMOVE)
        )
        if not changed:
            logger.info("No changes needed when removing %s", user_id)

        if self.is_idle and self._on_idle is not None:
            self._on_idle(self)

    async def handle_message(self, connection: Connection, raw: str) -> None:
        """Handle one client frame."""
        try:
            message = parse_client_message(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unparseable message from %s: %s", connection.user_id, e)
            return
        except ValidationError as e:
            logger.warning("Invalid message from %s: %s", connection.user_id, e)
            await self._send(connection, error_message("Invalid message payload"))
            return

        if message is None:
            logger.info("Ignoring unknown message type from %s", connection.user_id)
            return

        if isinstance(message, GetSessionMessage):
            await self._send(connection, session_state_message(self.session))
        elif isinstance(message, AddStatementMessage):
            await self._add_statement(connection, message)
        elif isinstance(message, VoteResponseMessage):
            await self._vote(connection, message)

    async def _add_statement(self, connection: Connection, message: AddStatementMessage) -> None:
        payload = message.payload
        created_by = payload.created_by or connection.user_id
        present_users = tuple(self.participant_ids())

        logger.info(
            'Adding statement "%s" by %s, present: [%s]',
            _describe(payload.text), created_by, ", ".join(present_users),
        )
        await self.dispatch(
            AddStatement(text=payload.text, created_by=created_by, present_users=present_users)
        )

    async def _vote(self, connection: Connection, message: VoteResponseMessage) -> None:
        payload = message.payload
        user_id = payload.user_id or connection.user_id

        logger.info(
            "Vote from %s on statement %d: %s",
            user_id, payload.statement_index, "agree" if payload.agree else "disagree",
        )
        try:
            await self.dispatch(
                RespondToStatement(
                    statement_index=payload.statement_index,
                    user_id=user_id,
                    response=payload.agree,
                )
            )
        except SessionActionError as e:
            logger.warning("Rejected vote from %s: %s", user_id, e)
            await self._send(connection, error_message(str(e)))

    async def _send(self, connection: Connection, data: str) -> None:
        try:
            await connection.send_text(data)
        except Exception as e:
            logger.warning("Failed to send to %s: %s", connection.user_id, e)

    async def broadcast(self, data: str, exclude: Connection | None = None) -> None:
        """Send a frame to every connection except ``exclude``."""
        for connection in list(self.connections):
            if connection is not exclude:
                await self._send(connection, data)

    async def close(self) -> None:
        """Cancel pending removals."""
        cancelled = self.removals.cancel_all()
        if cancelled:
            logger.info("Cancelled %d pending removals in room %s", cancelled, self.room_id)


class RoomRegistry:
    """Maps room ids to their active Room."""

    def __init__(
        self,
        store: RoomStore | None = None,
        grace_seconds: float = PRESENCE_GRACE_SECONDS,
    ) -> None:
        self.store = store if store is not None else RoomStore()
        self.grace_seconds = grace_seconds
        self._rooms: dict[str, Room] = {}

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        """Return the active room for an id, activating it if needed."""
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(
                room_id,
                self.store,
                grace_seconds=self.grace_seconds,
                on_idle=self._deactivate,
            )
            self._rooms[room_id] = room
            if room_id in self.store:
                logger.info("Activated room %s with a stored session", room_id)
            else:
                logger.info("Activated room %s", room_id)
        return room

    def _deactivate(self, room: Room) -> None:
        if self._rooms.get(room.room_id) is not room or not room.is_idle:
            return
        del self._rooms[room.room_id]
        self.store.delete(room.room_id)
        logger.info("Deactivated room %s (%d sessions stored)", room.room_id, len(self.store))

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    async def close_all(self) -> None:
        """Cancel the removal timers of every room."""
        for room in list(self._rooms.values()):
            await room.close()
