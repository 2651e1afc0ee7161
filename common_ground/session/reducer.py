"""Session state machine.

``session_reducer`` is the only way session state changes. It is pure: it
never mutates its input, performs no I/O, and returns a complete new
``Session`` (or the input itself when nothing applies). The live statement
is recomputed from the whole ledger after every mutation.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

from .errors import AuthorVoteError, NotPresentError, StatementIndexError
from .fairness import select_live_statement_index
from .models import Session, Statement
from .presence import PresenceChange, update_unresolved_statements

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Kinds of session action."""

    ADD_STATEMENT = "ADD_STATEMENT"
    RESPOND_TO_STATEMENT = "RESPOND_TO_STATEMENT"
    UPDATE_UNRESOLVED_STATEMENTS = "UPDATE_UNRESOLVED_STATEMENTS"


@dataclass(frozen=True)
class AddStatement:
    """Append a statement; the author agrees automatically."""

    text: str
    created_by: str
    present_users: tuple[str, ...] = ()

    type = ActionType.ADD_STATEMENT


@dataclass(frozen=True)
class RespondToStatement:
    """Record (or overwrite) one participant's vote."""

    statement_index: int
    user_id: str
    response: bool

    type = ActionType.RESPOND_TO_STATEMENT


@dataclass(frozen=True)
class UpdateUnresolvedStatements:
    """A participant joined or permanently left the room."""

    user_id: str
    change: PresenceChange

    type = ActionType.UPDATE_UNRESOLVED_STATEMENTS


Action = Union[AddStatement, RespondToStatement, UpdateUnresolvedStatements]


def _unique(user_ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(user_ids))


def _with_live_index(statements: tuple[Statement, ...]) -> Session:
    return Session(
        statements=statements,
        live_statement_index=select_live_statement_index(statements),
    )


def _add_statement(session: Session, action: AddStatement) -> Session:
    if not action.text or not action.text.strip() or not action.created_by:
        logger.debug("Ignoring ADD_STATEMENT with empty text or author")
        return session

    present = _unique(action.present_users)
    if action.created_by not in present:
        present += (action.created_by,)

    statement = Statement(
        text=action.text,
        created_by=action.created_by,
        present=present,
        responses={action.created_by: True},
    )
    return _with_live_index(session.statements + (statement,))


def _respond_to_statement(session: Session, action: RespondToStatement) -> Session:
    index = action.statement_index
    if not 0 <= index < len(session.statements):
        raise StatementIndexError(index, len(session.statements))

    statement = session.statements[index]
    if action.user_id not in statement.present:
        raise NotPresentError(action.user_id, index)

    # The author's own agreement is fixed at creation
    if action.user_id == statement.created_by:
        if not action.response:
            raise AuthorVoteError(action.user_id, index)
        return session

    updated = replace(
        statement,
        responses={**statement.responses, action.user_id: bool(action.response)},
    )
    statements = session.statements[:index] + (updated,) + session.statements[index + 1:]
    return _with_live_index(statements)


def _update_unresolved(session: Session, action: UpdateUnresolvedStatements) -> Session:
    statements = update_unresolved_statements(
        session.statements, action.user_id, action.change
    )
    live_index = select_live_statement_index(statements)
    if statements is session.statements and live_index == session.live_statement_index:
        return session
    return Session(statements=statements, live_statement_index=live_index)


def action_from_dict(data: Any) -> Action | None:
    """Parse a ``{"type": ..., "payload": {...}}`` mapping into an action.

    Payload keys follow the wire convention (``createdBy``, ``presentUsers``,
    ``statementIndex``, ``userId``, ``response``, ``action``).

    Returns:
        The action, or None when the mapping is malformed or of unknown type
    """
    if not isinstance(data, Mapping):
        return None
    payload = data.get("payload")
    if not isinstance(payload, Mapping):
        return None

    try:
        action_type = ActionType(data.get("type"))
    except ValueError:
        return None

    if action_type == ActionType.ADD_STATEMENT:
        text = payload.get("text")
        created_by = payload.get("createdBy")
        present_users = payload.get("presentUsers", [])
        if not isinstance(text, str) or not isinstance(created_by, str):
            return None
        if not isinstance(present_users, (list, tuple)):
            return None
        return AddStatement(
            text=text,
            created_by=created_by,
            present_users=tuple(u for u in present_users if isinstance(u, str)),
        )

    if action_type == ActionType.RESPOND_TO_STATEMENT:
        index = payload.get("statementIndex")
        user_id = payload.get("userId")
        response = payload.get("response")
        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if not isinstance(user_id, str) or not isinstance(response, bool):
            return None
        return RespondToStatement(statement_index=index, user_id=user_id, response=response)

    user_id = payload.get("userId")
    try:
        change = PresenceChange(payload.get("action"))
    except ValueError:
        return None
    if not isinstance(user_id, str):
        return None
    return UpdateUnresolvedStatements(user_id=user_id, change=change)


def session_reducer(session: Session, action: Action | Mapping[str, Any]) -> Session:
    """Apply one action to a session and return the resulting session.

    Args:
        session: Current session (never modified)
        action: An action dataclass, or the equivalent wire mapping

    Returns:
        The next session. Unknown or malformed actions return ``session``
        unchanged.

    Raises:
        StatementIndexError: A vote referenced a statement that does not exist
        NotPresentError: A vote came from a participant not in ``present``
        AuthorVoteError: The author voted to disagree with their own statement
    """
    if isinstance(action, Mapping):
        parsed = action_from_dict(action)
        if parsed is None:
            logger.debug("Ignoring malformed or unknown action: %r", action.get("type"))
            return session
        action = parsed

    if isinstance(action, AddStatement):
        return _add_statement(session, action)
    if isinstance(action, RespondToStatement):
        return _respond_to_statement(session, action)
    if isinstance(action, UpdateUnresolvedStatements):
        return _update_unresolved(session, action)

    logger.debug("Ignoring unknown action: %r", action)
    return session
