"""
Test configuration — ensures repo root is in sys.path + determinism guards.

Tests never touch the user's real planner home: EVENTPLAN_HOME and
EVENTPLAN_DB are redirected to a per-test temp directory.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from eventplan.store import TimelineStore  # noqa: E402
from tests.fixtures import create_fixture_db  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the planner home and default DB at a temp directory."""
    monkeypatch.setenv("EVENTPLAN_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("EVENTPLAN_DB", str(tmp_path / "home" / "default.db"))


@pytest.fixture()
def fixture_db_path(tmp_path):
    """A freshly seeded fixture DB per test (tests mutate it)."""
    db_path = tmp_path / "fixture.db"
    conn = create_fixture_db(db_path)
    conn.close()
    return db_path


@pytest.fixture()
def store(fixture_db_path):
    return TimelineStore(fixture_db_path)
