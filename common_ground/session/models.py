"""Immutable session data models shared by the reducer and the transport."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Statement:
    """A statement put to the room for an Agree/Disagree vote.

    ``present`` lists the participants who owe a vote, in the order they
    were added. ``responses`` maps participant id to vote (True = agree).
    Neither container is mutated after construction; transitions build
    fresh values with ``dataclasses.replace``.
    """

    text: str
    created_by: str
    present: tuple[str, ...] = ()
    responses: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire dictionary."""
        return {
            "text": self.text,
            "createdBy": self.created_by,
            "present": list(self.present),
            "responses": dict(self.responses),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Statement":
        """Create from a wire dictionary."""
        return cls(
            text=data.get("text", ""),
            created_by=data.get("createdBy", data.get("created_by", "")),
            present=tuple(data.get("present", [])),
            responses={k: bool(v) for k, v in data.get("responses", {}).items()},
        )


@dataclass(frozen=True)
class Session:
    """The full voting state of one room.

    ``statements`` is append-only and indexed by creation order.
    ``live_statement_index`` is None when nothing is waiting for votes.
    """

    statements: tuple[Statement, ...] = ()
    live_statement_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire dictionary."""
        return {
            "statements": [s.to_dict() for s in self.statements],
            "liveStatementIndex": self.live_statement_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """Create from a wire dictionary."""
        statements = tuple(
            Statement.from_dict(s) for s in data.get("statements", [])
        )
        return cls(
            statements=statements,
            live_statement_index=data.get(
                "liveStatementIndex", data.get("live_statement_index")
            ),
        )


def initialize_session() -> Session:
    """Return the empty session a room starts with."""
    return Session()
