"""The living narrative: statements the whole room agreed on."""

from .classification import is_agreed
from .models import Session, Statement


def get_consensus_statements(session: Session) -> list[Statement]:
    """Return agreed statements in creation order.

    Always derived from the ledger on each call. A departure can turn a
    statement with an emptied present set into an agreed one, so nothing
    here is cached.
    """
    return [s for s in session.statements if is_agreed(s)]


def get_narrative(session: Session) -> list[str]:
    """Return the texts of the agreed statements, oldest first."""
    return [s.text for s in get_consensus_statements(session)]
