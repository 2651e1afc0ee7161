"""API client for the Common Ground TUI."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx


@dataclass
class LiveStatement:
    """The statement currently up for a vote."""

    text: str
    created_by: str
    agree: int
    disagree: int
    waiting: int


@dataclass
class RoomView:
    """What the viewer shows for one room."""

    room_id: str
    participants: list[str]
    statement_count: int
    narrative: list[str] = field(default_factory=list)
    live: LiveStatement | None = None


def _live_from_dict(data: dict[str, Any] | None) -> LiveStatement | None:
    if not data:
        return None
    responses = data.get("responses", {})
    present = data.get("present", [])
    return LiveStatement(
        text=data.get("text", ""),
        created_by=data.get("createdBy", ""),
        agree=sum(1 for v in responses.values() if v),
        disagree=sum(1 for v in responses.values() if not v),
        waiting=sum(1 for p in present if p not in responses),
    )


class RoomAPI:
    """Client for the Common Ground REST API."""

    def __init__(self, base_url: str = "http://localhost:8001"):
        self.base_url = base_url
        self.client = httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def create_room(self) -> str:
        """Mint a new room id."""
        response = await self.client.post("/api/rooms")
        response.raise_for_status()
        return response.json()["room_id"]

    async def get_room(self, room_id: str) -> RoomView | None:
        """Fetch a room snapshot. Returns None when the room is not active."""
        response = await self.client.get(f"/api/rooms/{room_id}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        data = response.json()
        return RoomView(
            room_id=data["room_id"],
            participants=data.get("participants", []),
            statement_count=len(data.get("session", {}).get("statements", [])),
            narrative=data.get("narrative", []),
            live=_live_from_dict(data.get("live_statement")),
        )

    async def export_markdown(self, room_id: str) -> str:
        """Download the Markdown export of a room."""
        response = await self.client.get(f"/api/rooms/{room_id}/export/markdown")
        response.raise_for_status()
        return response.text

    async def save_markdown(self, room_id: str, directory: Path) -> Path:
        """Download the Markdown export into ``directory/<room_id>.md``."""
        path = Path(directory) / f"{room_id}.md"
        path.write_text(await self.export_markdown(room_id), encoding="utf-8")
        return path
