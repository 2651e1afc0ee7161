"""Tests for statement resolution and agreement classification."""

from common_ground.session import (
    Session,
    Statement,
    get_unresolved_statements,
    is_agreed,
    is_resolved,
    is_unresolved,
)


# ---------------------------------------------------------------------------
# is_resolved / is_unresolved
# ---------------------------------------------------------------------------

class TestIsResolved:
    """Tests for is_resolved and is_unresolved."""

    def test_waiting_on_a_vote_is_unresolved(self):
        """A present participant without a response keeps it open."""
        s = Statement("X", "a", present=("a", "b"), responses={"a": True})
        assert is_resolved(s) is False
        assert is_unresolved(s) is True

    def test_everyone_voted_is_resolved(self):
        """All present participants voted, regardless of direction."""
        s = Statement("X", "a", present=("a", "b"), responses={"a": True, "b": False})
        assert is_resolved(s) is True
        assert is_unresolved(s) is False

    def test_empty_present_is_vacuously_resolved(self):
        """Nobody left to vote means resolved."""
        s = Statement("X", "a", present=(), responses={})
        assert is_resolved(s) is True


# ---------------------------------------------------------------------------
# is_agreed
# ---------------------------------------------------------------------------

class TestIsAgreed:
    """Tests for is_agreed."""

    def test_unanimous_agree(self):
        s = Statement("X", "a", present=("a", "b"), responses={"a": True, "b": True})
        assert is_agreed(s) is True

    def test_single_disagree_blocks_agreement(self):
        s = Statement("X", "a", present=("a", "b"), responses={"a": True, "b": False})
        assert is_agreed(s) is False

    def test_unresolved_is_never_agreed(self):
        """All recorded votes agree but one is outstanding."""
        s = Statement("X", "a", present=("a", "b"), responses={"a": True})
        assert is_agreed(s) is False

    def test_empty_present_is_vacuously_agreed(self):
        s = Statement("X", "a", present=(), responses={})
        assert is_agreed(s) is True


# ---------------------------------------------------------------------------
# get_unresolved_statements
# ---------------------------------------------------------------------------

class TestGetUnresolvedStatements:
    """Tests for get_unresolved_statements."""

    def test_returns_index_pairs_in_creation_order(self):
        done = Statement("done", "a", present=("a",), responses={"a": True})
        open_1 = Statement("open 1", "a", present=("a", "b"), responses={"a": True})
        open_2 = Statement("open 2", "b", present=("a", "b"), responses={"b": True})
        session = Session(statements=(open_1, done, open_2))

        assert get_unresolved_statements(session) == [(0, open_1), (2, open_2)]

    def test_empty_session(self):
        assert get_unresolved_statements(Session()) == []
