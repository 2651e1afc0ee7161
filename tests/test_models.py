"""Tests for session models and their wire format."""

import dataclasses

import pytest
from session_helpers import add, vote

from common_ground.session import Session, Statement, initialize_session


class TestStatementWireFormat:
    """Tests for Statement.to_dict / from_dict."""

    def test_to_dict_uses_camel_case(self):
        s = Statement("X", "a", present=("a", "b"), responses={"a": True})
        assert s.to_dict() == {
            "text": "X",
            "createdBy": "a",
            "present": ["a", "b"],
            "responses": {"a": True},
        }

    def test_from_dict_restores_tuple_present(self):
        s = Statement.from_dict(
            {"text": "X", "createdBy": "a", "present": ["a", "b"], "responses": {"a": True}}
        )
        assert s.present == ("a", "b")
        assert s == Statement("X", "a", present=("a", "b"), responses={"a": True})

    def test_from_dict_missing_fields(self):
        s = Statement.from_dict({"text": "X", "createdBy": "a"})
        assert s.present == ()
        assert s.responses == {}


class TestSessionWireFormat:
    """Tests for Session.to_dict / from_dict."""

    def test_empty_session(self):
        assert initialize_session().to_dict() == {"statements": [], "liveStatementIndex": None}

    def test_from_dict_of_empty_mapping(self):
        assert Session.from_dict({}) == initialize_session()

    def test_reconstructs_equal_session(self):
        session = add(initialize_session(), "X", "a", ["a", "b", "c"])
        session = vote(session, 0, "b", False)
        assert Session.from_dict(session.to_dict()) == session


class TestImmutability:
    """Session values cannot be reassigned in place."""

    def test_session_is_frozen(self):
        session = initialize_session()
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.live_statement_index = 3

    def test_statement_is_frozen(self):
        s = Statement("X", "a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.text = "Y"

    def test_structural_equality(self):
        one = add(initialize_session(), "X", "a", ["a", "b"])
        two = add(initialize_session(), "X", "a", ["a", "b"])
        assert one == two
        assert one is not two
