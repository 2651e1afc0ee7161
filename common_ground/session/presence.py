"""Keep each unresolved statement's present set in step with the room.

Resolved statements are history: a late joiner never owes a vote on them and
a departure never rewrites their vote record.
"""

from dataclasses import replace
from enum import Enum

from .classification import is_resolved
from .models import Statement


class PresenceChange(str, Enum):
    """Direction of a presence update."""

    ADD = "add"
    REMOVE = "remove"


def _add_participant(statement: Statement, user_id: str) -> Statement:
    if user_id in statement.present:
        return statement
    return replace(statement, present=statement.present + (user_id,))


def _remove_participant(statement: Statement, user_id: str) -> Statement:
    if user_id not in statement.present and user_id not in statement.responses:
        return statement
    return replace(
        statement,
        present=tuple(p for p in statement.present if p != user_id),
        responses={k: v for k, v in statement.responses.items() if k != user_id},
    )


def update_unresolved_statements(
    statements: tuple[Statement, ...],
    user_id: str,
    change: PresenceChange,
) -> tuple[Statement, ...]:
    """Add or remove a participant on every unresolved statement.

    Args:
        statements: The full ledger
        user_id: Participant joining or leaving
        change: PresenceChange.ADD or PresenceChange.REMOVE

    Returns:
        The updated ledger. The input tuple itself is returned when no
        statement changed, so callers can detect a no-op by identity.
    """
    apply = _add_participant if change == PresenceChange.ADD else _remove_participant

    updated = tuple(
        statement if is_resolved(statement) else apply(statement, user_id)
        for statement in statements
    )

    if all(new is old for new, old in zip(updated, statements)):
        return statements
    return updated
