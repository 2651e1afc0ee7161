"""Tests for fair live-statement selection."""

from session_helpers import EVERYONE, add, vote

from common_ground.session import (
    Session,
    Statement,
    count_resolved_by_author,
    get_live_statement,
    get_unresolved_statements,
    initialize_session,
    select_live_statement_index,
)


def resolve(session, index, votes):
    """Apply every (user, agree) vote to one statement."""
    for user_id, agree in votes:
        session = vote(session, index, user_id, agree)
    return session


# ---------------------------------------------------------------------------
# select_live_statement_index
# ---------------------------------------------------------------------------

class TestSelectLiveStatementIndex:
    """Tests for the pure selector."""

    def test_no_statements(self):
        assert select_live_statement_index(()) is None

    def test_all_resolved(self):
        statements = (
            Statement("X", "a", present=("a",), responses={"a": True}),
            Statement("Y", "b", present=("b",), responses={"b": False}),
        )
        assert select_live_statement_index(statements) is None

    def test_prefers_author_with_fewer_resolved(self):
        """a already has one resolved statement, so b's later one wins."""
        statements = (
            Statement("a1", "a", present=("a",), responses={"a": True}),
            Statement("a2", "a", present=("a", "b"), responses={"a": True}),
            Statement("b1", "b", present=("a", "b"), responses={"b": True}),
        )
        assert select_live_statement_index(statements) == 2

    def test_ties_keep_creation_order(self):
        statements = (
            Statement("a1", "a", present=("a", "b"), responses={"a": True}),
            Statement("b1", "b", present=("a", "b"), responses={"b": True}),
        )
        assert select_live_statement_index(statements) == 0

    def test_is_idempotent(self):
        statements = (
            Statement("a1", "a", present=("a", "b"), responses={"a": True}),
            Statement("b1", "b", present=("a", "b"), responses={"b": True}),
        )
        assert select_live_statement_index(statements) == select_live_statement_index(statements)


class TestCountResolvedByAuthor:
    """Tests for count_resolved_by_author."""

    def test_counts_only_resolved(self):
        statements = (
            Statement("a1", "a", present=("a",), responses={"a": True}),
            Statement("a2", "a", present=("a", "b"), responses={"a": True}),
            Statement("b1", "b", present=("b",), responses={"b": True}),
        )
        counts = count_resolved_by_author(statements)
        assert counts["a"] == 1
        assert counts["b"] == 1
        assert counts["nobody"] == 0


# ---------------------------------------------------------------------------
# get_live_statement through the reducer
# ---------------------------------------------------------------------------

class TestGetLiveStatement:
    """Live statement behaviour as sessions evolve."""

    def test_none_when_no_statements(self):
        assert get_live_statement(initialize_session()) is None

    def test_first_statement_when_nobody_has_resolved(self, three_statements):
        live = get_live_statement(three_statements)
        assert live is not None
        assert live.text == "Statement by user_1"
        assert three_statements.live_statement_index == 0

    def test_prioritizes_creators_with_fewer_resolved(self, three_statements):
        """After user_1's first statement resolves, user_2's jumps ahead."""
        session = resolve(
            three_statements, 0, [("user_2", True), ("user_3", False)]
        )

        live = get_live_statement(session)
        assert live is not None
        assert live.text == "Statement by user_2"
        assert session.live_statement_index == 1
        assert len(get_unresolved_statements(session)) == 2

    def test_equal_resolved_counts_keep_original_order(self):
        session = initialize_session()
        session = add(session, "First statement by user_1", "user_1", ["user_1", "user_2"])
        session = add(session, "Statement by user_2", "user_2", ["user_1", "user_2"])

        assert get_live_statement(session).text == "First statement by user_1"

    def test_none_when_all_resolved(self):
        session = add(initialize_session(), "Test statement", "user_1", ["user_1", "user_2"])
        session = vote(session, 0, "user_2", False)

        assert get_live_statement(session) is None
        assert session.live_statement_index is None

    def test_complex_scenario(self):
        """user_1 has 2 resolved, user_2 has 1, user_3 has 0: user_3 goes first."""
        session = initialize_session()
        session = add(session, "User_1 statement 1", "user_1", EVERYONE)
        session = add(session, "User_1 statement 2", "user_1", EVERYONE)
        session = add(session, "User_2 statement 1", "user_2", EVERYONE)
        session = add(session, "User_3 statement 1", "user_3", EVERYONE)
        session = add(session, "User_3 statement 2", "user_3", EVERYONE)

        session = resolve(session, 0, [("user_2", True), ("user_3", True)])
        session = resolve(session, 1, [("user_2", False), ("user_3", True)])
        session = resolve(session, 2, [("user_1", True), ("user_3", False)])

        live = get_live_statement(session)
        assert live.text == "User_3 statement 1"
        assert live.created_by == "user_3"

    def test_three_authors_live_moves_by_fairness(self):
        """First created goes live; after it resolves the min-count author wins."""
        session = initialize_session()
        session = add(session, "A1", "a", ["a", "b", "c"])
        session = add(session, "A2", "a", ["a", "b", "c"])
        session = add(session, "B1", "b", ["a", "b", "c"])
        session = add(session, "C1", "c", ["a", "b", "c"])
        assert session.live_statement_index == 0

        session = resolve(session, 0, [("b", True), ("c", True)])
        # a has 1 resolved; b and c have 0, b's statement is older
        assert session.live_statement_index == 2

    def test_out_of_range_index_returns_none(self):
        assert get_live_statement(Session(statements=(), live_statement_index=3)) is None
