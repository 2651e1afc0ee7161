"""Fair selection of the live statement.

Authors with fewer resolved statements go first so that a prolific author
cannot monopolise the room. Ties fall back to creation order.
"""

from collections import Counter
from collections.abc import Sequence

from .classification import is_resolved
from .models import Session, Statement


def count_resolved_by_author(statements: Sequence[Statement]) -> Counter[str]:
    """Count resolved statements per author.

    Args:
        statements: The full ledger

    Returns:
        Counter of author id -> number of resolved statements
    """
    return Counter(s.created_by for s in statements if is_resolved(s))


def select_live_statement_index(statements: Sequence[Statement]) -> int | None:
    """Pick the index of the statement that should be live.

    Args:
        statements: The full ledger in creation order

    Returns:
        Index of the unresolved statement whose author has the fewest
        resolved statements (earliest index on ties), or None when every
        statement is resolved
    """
    resolved_counts = count_resolved_by_author(statements)

    candidates = [
        (resolved_counts[statement.created_by], index)
        for index, statement in enumerate(statements)
        if not is_resolved(statement)
    ]
    if not candidates:
        return None

    _, index = min(candidates)
    return index


def get_live_statement(session: Session) -> Statement | None:
    """Return the live statement of a session, if any."""
    index = session.live_statement_index
    if index is None or not 0 <= index < len(session.statements):
        return None
    return session.statements[index]
