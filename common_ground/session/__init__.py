"""Pure session state machine for consensus rooms."""

from .classification import (
    get_unresolved_statements,
    is_agreed,
    is_resolved,
    is_unresolved,
)
from .errors import (
    AuthorVoteError,
    NotPresentError,
    SessionActionError,
    StatementIndexError,
)
from .fairness import (
    count_resolved_by_author,
    get_live_statement,
    select_live_statement_index,
)
from .models import Session, Statement, initialize_session
from .narrative import get_consensus_statements, get_narrative
from .presence import PresenceChange, update_unresolved_statements
from .reducer import (
    Action,
    ActionType,
    AddStatement,
    RespondToStatement,
    UpdateUnresolvedStatements,
    action_from_dict,
    session_reducer,
)

__all__ = [
    "Action",
    "ActionType",
    "AddStatement",
    "AuthorVoteError",
    "NotPresentError",
    "PresenceChange",
    "RespondToStatement",
    "Session",
    "SessionActionError",
    "Statement",
    "StatementIndexError",
    "UpdateUnresolvedStatements",
    "action_from_dict",
    "count_resolved_by_author",
    "get_consensus_statements",
    "get_live_statement",
    "get_narrative",
    "get_unresolved_statements",
    "initialize_session",
    "is_agreed",
    "is_resolved",
    "is_unresolved",
    "select_live_statement_index",
    "session_reducer",
    "update_unresolved_statements",
]
