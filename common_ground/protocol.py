"""WebSocket message shapes exchanged with room clients.

Client messages are JSON objects discriminated by ``type`` and validated with
pydantic. Server messages are plain JSON strings.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    TypeAdapter,
    field_validator,
)

from .config import MAX_STATEMENT_LENGTH
from .session import Session


class GetSessionMessage(BaseModel):
    """Request for a full snapshot."""

    type: Literal["get_session"]


class AddStatementPayload(BaseModel):
    """A new statement submitted by a participant."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1, max_length=MAX_STATEMENT_LENGTH)
    created_by: str | None = Field(
        default=None,
        validation_alias=AliasChoices("createdBy", "userId", "created_by"),
    )
    # Informational only; the server fills present from its own connections
    present: list[str] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Statement text must not be blank")
        return value


class AddStatementMessage(BaseModel):
    type: Literal["add_statement"]
    payload: AddStatementPayload


class VoteResponsePayload(BaseModel):
    """A participant's vote on one statement."""

    model_config = ConfigDict(populate_by_name=True)

    statement_index: StrictInt = Field(
        ..., validation_alias=AliasChoices("statementIndex", "statement_index")
    )
    user_id: str | None = Field(
        default=None, validation_alias=AliasChoices("userId", "user_id")
    )
    agree: StrictBool = Field(..., validation_alias=AliasChoices("agree", "response"))


class VoteResponseMessage(BaseModel):
    type: Literal["vote_response"]
    payload: VoteResponsePayload


ClientMessage = Annotated[
    Union[GetSessionMessage, AddStatementMessage, VoteResponseMessage],
    Field(discriminator="type"),
]

_client_message_adapter: TypeAdapter[Any] = TypeAdapter(ClientMessage)

CLIENT_MESSAGE_TYPES = frozenset({"get_session", "add_statement", "vote_response"})


def parse_client_message(raw: str) -> ClientMessage | None:
    """Parse a raw client frame.

    Args:
        raw: JSON text received from the socket

    Returns:
        The validated message, or None when ``type`` is missing or unknown

    Raises:
        json.JSONDecodeError: The frame is not JSON
        pydantic.ValidationError: A known message type has an invalid payload
    """
    data = json.loads(raw)
    if not isinstance(data, dict) or data.get("type") not in CLIENT_MESSAGE_TYPES:
        return None
    return _client_message_adapter.validate_python(data)


def session_state_message(session: Session) -> str:
    """Format a session_state snapshot."""
    return json.dumps({"type": "session_state", "session": session.to_dict()})


def error_message(message: str) -> str:
    """Format an error reply for the sending client."""
    return json.dumps({"type": "error", "message": message})
