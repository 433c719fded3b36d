"""Tests for the eventplan command line."""

import json
import logging

import pytest

from cli.main import main


@pytest.fixture(autouse=True)
def restore_root_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _run(fixture_db_path, *args):
    return main(["--db", str(fixture_db_path), *args])


def test_init_db(tmp_path, capsys):
    db_path = tmp_path / "cli.db"
    assert main(["--db", str(db_path), "init-db"]) == 0
    assert "Database ready" in capsys.readouterr().out
    assert db_path.exists()


class TestRecalc:
    def test_json_output(self, fixture_db_path, capsys):
        code = _run(fixture_db_path, "recalc", "tl-wedding", "--today", "2026-01-05", "--json")
        assert code == 0

        data = json.loads(capsys.readouterr().out)
        assert data["lead_time_months"] == 12
        assert {"id": "t-final", "due_date": "2026-12-13"} in data["tasks"]

    def test_table_output(self, fixture_db_path, capsys):
        assert _run(fixture_db_path, "recalc", "tl-wedding", "--today", "2026-01-05") == 0

        out = capsys.readouterr().out
        assert "Recalculated: tl-wedding" in out
        assert "Lead time: 12 months (scale 1.000)" in out
        assert "2026-12-27" in out
        assert "unresolvable_block" in out

    def test_dry_run(self, fixture_db_path, capsys):
        code = _run(fixture_db_path, "recalc", "tl-wedding", "--today", "2026-01-05", "--dry-run")
        assert code == 0
        assert "Recalculation preview" in capsys.readouterr().out

        _run(fixture_db_path, "history", "tl-wedding")
        assert "No audit entries" in capsys.readouterr().out

    def test_missing_timeline(self, fixture_db_path, capsys):
        assert _run(fixture_db_path, "recalc", "nope") == 2
        assert "Timeline not found" in capsys.readouterr().err

    def test_load_failure(self, fixture_db_path, capsys):
        assert _run(fixture_db_path, "recalc", "tl-broken") == 1
        assert "Failed to load tasks" in capsys.readouterr().err

    def test_invalid_distribution(self, fixture_db_path):
        with pytest.raises(SystemExit):
            _run(fixture_db_path, "recalc", "tl-wedding", "--distribution", "random")


class TestProgressAndHistory:
    def test_progress(self, fixture_db_path, capsys):
        assert _run(fixture_db_path, "progress", "tl-wedding", "--today", "2026-04-01") == 0

        out = capsys.readouterr().out
        assert "Overall: 1/10 (10%)" in out
        assert "planner: 0/1 (0%)" in out
        assert "Overdue: t-dress" in out

    def test_progress_missing_event(self, fixture_db_path, capsys):
        assert _run(fixture_db_path, "progress", "tl-orphan") == 2
        assert "Event not found" in capsys.readouterr().err

    def test_history_after_recalc(self, fixture_db_path, capsys):
        _run(fixture_db_path, "recalc", "tl-wedding", "--today", "2026-01-05")
        capsys.readouterr()

        assert _run(fixture_db_path, "history", "tl-wedding") == 0
        out = capsys.readouterr().out
        assert "Audit trail: tl-wedding" in out
        assert "admin" in out
        assert '"converged": true' in out
