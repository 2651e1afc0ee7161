"""Resolution and agreement classification for statements."""

from .models import Session, Statement


def is_resolved(statement: Statement) -> bool:
    """True when every present participant has voted.

    A statement with nobody present is vacuously resolved.
    """
    return all(user_id in statement.responses for user_id in statement.present)


def is_agreed(statement: Statement) -> bool:
    """True when the statement is resolved and every vote is agree."""
    return is_resolved(statement) and all(statement.responses.values())


def is_unresolved(statement: Statement) -> bool:
    return not is_resolved(statement)


def get_unresolved_statements(session: Session) -> list[tuple[int, Statement]]:
    """Return ``(index, statement)`` pairs still waiting on votes, oldest first."""
    return [
        (index, statement)
        for index, statement in enumerate(session.statements)
        if is_unresolved(statement)
    ]
