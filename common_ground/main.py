"""FastAPI app for Common Ground: room WebSockets plus a read-only REST API."""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
import uvicorn

from .config import CORS_ORIGINS, HOST, MAX_STATEMENT_LENGTH, PORT
from .export import export_to_json, export_to_markdown
from .logging_config import connection_context, setup_logging
from .rooms import Room, RoomRegistry, WebSocketConnection
from .session import get_live_statement, get_narrative
from .shutdown import ShutdownCoordinator
from .telemetry import setup_telemetry
from .version import get_version_info

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateRoomResponse(BaseModel):
    """Identifier for a freshly minted room."""
    room_id: str


class RoomSummary(BaseModel):
    """Room metadata for list view."""
    room_id: str
    participants: int
    statement_count: int


class RoomSnapshot(BaseModel):
    """Full state of an active room."""
    room_id: str
    session: Dict[str, Any]
    live_statement: Optional[Dict[str, Any]]
    narrative: List[str]
    participants: List[str]


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.rooms


def get_active_room(room_id: str, registry: RoomRegistry = Depends(get_registry)) -> Room:
    """Resolve an active room or raise 404."""
    room = registry.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "Common Ground API"}


@router.get("/api/config")
async def get_config(registry: RoomRegistry = Depends(get_registry)):
    """Get runtime settings clients need to know about."""
    return {
        "presence_grace_seconds": registry.grace_seconds,
        "max_statement_length": MAX_STATEMENT_LENGTH,
        "version": get_version_info().version,
    }


@router.get("/api/version")
async def get_version():
    """Get build and version information."""
    return asdict(get_version_info())


@router.post("/api/rooms", response_model=CreateRoomResponse)
async def create_room():
    """Mint a new room id. The room activates when the first client connects."""
    return CreateRoomResponse(room_id=str(uuid.uuid4()))


@router.get("/api/rooms", response_model=List[RoomSummary])
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    """List active rooms."""
    summaries = []
    for room_id in registry.room_ids():
        room = registry.get(room_id)
        if room is None:
            continue
        summaries.append(
            RoomSummary(
                room_id=room_id,
                participants=len(room.participant_ids()),
                statement_count=len(room.session.statements),
            )
        )
    return summaries


@router.get("/api/rooms/{room_id}", response_model=RoomSnapshot)
async def get_room(room: Room = Depends(get_active_room)):
    """Get the full session of an active room with derived views."""
    session = room.session
    live = get_live_statement(session)
    return RoomSnapshot(
        room_id=room.room_id,
        session=session.to_dict(),
        live_statement=live.to_dict() if live else None,
        narrative=get_narrative(session),
        participants=room.participant_ids(),
    )


@router.get("/api/rooms/{room_id}/narrative")
async def get_room_narrative(room: Room = Depends(get_active_room)):
    """Get the agreed statements of an active room."""
    return {"room_id": room.room_id, "narrative": get_narrative(room.session)}


@router.get("/api/rooms/{room_id}/export/markdown")
async def export_room_markdown(room: Room = Depends(get_active_room)):
    """Export a room as Markdown."""
    markdown_content = export_to_markdown(room.room_id, room.session)
    return StreamingResponse(
        iter([markdown_content]),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{room.room_id}.md"'},
    )


@router.get("/api/rooms/{room_id}/export/json")
async def export_room_json(room: Room = Depends(get_active_room)):
    """Export a room as JSON."""
    json_content = export_to_json(room.room_id, room.session)
    return StreamingResponse(
        iter([json.dumps(json_content, indent=2)]),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{room.room_id}.json"'},
    )


@router.websocket("/ws/rooms/{room_id}")
async def room_socket(
    websocket: WebSocket,
    room_id: str,
    user_id: str = Query(..., min_length=1),
):
    """Join a room as ``user_id`` and exchange protocol messages."""
    registry: RoomRegistry = websocket.app.state.rooms
    shutdown: ShutdownCoordinator = websocket.app.state.shutdown

    await websocket.accept()
    if shutdown.is_shutting_down:
        await websocket.send_text(shutdown.shutdown_message())
        await websocket.close(code=1012)
        return

    with connection_context(room_id, user_id):
        room = registry.get_or_create(room_id)
        connection = WebSocketConnection(websocket, user_id)
        with shutdown.track(connection):
            try:
                await room.connect(connection)
                while True:
                    raw = await websocket.receive_text()
                    await room.handle_message(connection, raw)
            except WebSocketDisconnect:
                pass
            finally:
                await room.disconnect(connection)


def create_app(
    registry: RoomRegistry | None = None,
    configure_logging: bool = False,
) -> FastAPI:
    """Build the application.

    Args:
        registry: Room registry to serve (a fresh one by default)
        configure_logging: Install the structured logging handlers

    Returns:
        Configured FastAPI app
    """
    if configure_logging:
        setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        coordinator: ShutdownCoordinator = app.state.shutdown
        # Sockets were already notified when GracefulServer caught the signal
        if not coordinator.is_shutting_down:
            coordinator.initiate_shutdown()
            await coordinator.notify_connections()
        await app.state.rooms.close_all()

    app = FastAPI(title="Common Ground API", lifespan=lifespan)
    app.state.rooms = registry if registry is not None else RoomRegistry()
    app.state.shutdown = ShutdownCoordinator()

    # Enable CORS for local development (when running frontend separately)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_telemetry(app)

    app.include_router(router)
    return app


app = create_app(configure_logging=True)


class GracefulServer(uvicorn.Server):
    """uvicorn server that warns room sockets before closing them.

    uvicorn closes open WebSockets before the lifespan shutdown runs, so the
    server_shutdown frame has to go out from the signal handler. A second
    signal exits immediately.
    """

    def handle_exit(self, sig, frame) -> None:
        coordinator: ShutdownCoordinator = app.state.shutdown
        if coordinator.is_shutting_down:
            super().handle_exit(sig, frame)
            return

        coordinator.initiate_shutdown()
        loop = asyncio.get_event_loop()
        loop.call_soon_threadsafe(
            lambda: loop.create_task(self._notify_then_exit(sig, frame))
        )

    async def _notify_then_exit(self, sig, frame) -> None:
        coordinator: ShutdownCoordinator = app.state.shutdown
        try:
            await coordinator.notify_connections()
            await app.state.rooms.close_all()
        finally:
            super().handle_exit(sig, frame)


def main() -> None:
    """Run the server with uvicorn."""
    config = uvicorn.Config(app, host=HOST, port=PORT)
    GracefulServer(config).run()


if __name__ == "__main__":
    main()
