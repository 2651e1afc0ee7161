"""Shared test fixtures and configuration.

Sets environment variables before any common_ground modules are imported so
module-level configuration picks them up.
"""

import os

import pytest

# pytest loads conftest.py before test modules, so this runs first.
os.environ.setdefault("COMMON_GROUND_PRESENCE_GRACE_SECONDS", "5")
os.environ.setdefault("COMMON_GROUND_MAX_STATEMENT_LENGTH", "500")

from session_helpers import EVERYONE, add  # noqa: E402

from common_ground.session import Session, initialize_session  # noqa: E402


@pytest.fixture
def three_statements() -> Session:
    """user_1, user_2, user_1 each add a statement with three people present."""
    session = initialize_session()
    session = add(session, "Statement by user_1", "user_1", EVERYONE)
    session = add(session, "Statement by user_2", "user_2", EVERYONE)
    session = add(session, "Second statement by user_1", "user_1", EVERYONE)
    return session
