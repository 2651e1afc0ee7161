"""Errors raised when a session action fails validation."""


class SessionActionError(ValueError):
    """Base class for actions rejected without touching the session."""


class StatementIndexError(SessionActionError):
    """The action referenced a statement that does not exist."""

    def __init__(self, statement_index: int, statement_count: int) -> None:
        self.statement_index = statement_index
        self.statement_count = statement_count
        super().__init__(
            f"Statement index {statement_index} out of range "
            f"(session has {statement_count} statements)"
        )


class NotPresentError(SessionActionError):
    """A participant voted on a statement they are not required to vote on."""

    def __init__(self, user_id: str, statement_index: int) -> None:
        self.user_id = user_id
        self.statement_index = statement_index
        super().__init__(
            f"User {user_id} is not present for statement {statement_index}"
        )


class AuthorVoteError(SessionActionError):
    """The author tried to withdraw their own agreement."""

    def __init__(self, user_id: str, statement_index: int) -> None:
        self.user_id = user_id
        self.statement_index = statement_index
        super().__init__(
            f"User {user_id} wrote statement {statement_index} and cannot disagree with it"
        )
