"""Tests for the SQLite timeline store and schema setup."""

from datetime import date

import pytest

from eventplan import db as db_module
from eventplan import safe_sql
from eventplan.errors import LoadError, NotFoundError, PersistenceError
from eventplan.models import BlockWindow, TaskDue
from eventplan.store import TimelineStore, WriteBatch


class TestInitDb:
    def test_creates_schema(self, tmp_path):
        info = db_module.init_db(tmp_path / "new.db")
        assert info["previous_version"] == 0
        assert info["schema_version"] == db_module.SCHEMA_VERSION
        assert info["missing_tables"] == []

    def test_idempotent(self, tmp_path):
        path = tmp_path / "new.db"
        db_module.init_db(path)
        info = db_module.init_db(path)
        assert info["previous_version"] == db_module.SCHEMA_VERSION

    def test_default_path_follows_env(self, tmp_path):
        info = db_module.init_db()
        assert info["db_path"] == str((tmp_path / "home" / "default.db").resolve())


def test_sql_builders_reject_unsafe_identifiers():
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        safe_sql.select("tasks; DROP TABLE tasks")
    with pytest.raises(ValueError, match="Invalid SQL identifier"):
        safe_sql.update("tasks", ["due_date = 1 --"])


class TestLoading:
    def test_fetch_timeline_with_event(self, store):
        timeline = store.fetch_timeline("tl-wedding")
        assert timeline.title == "Wedding checklist"
        assert timeline.event.date == date(2026, 12, 31)
        assert timeline.scale_factor is None

    def test_fetch_timeline_missing(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.fetch_timeline("nope")
        assert exc_info.value.status_code == 404

    def test_fetch_timeline_bad_event_date(self, store):
        store.insert("events", {"id": "ev-bad", "name": "Bad", "date": "next spring"})
        store.insert("timelines", {"id": "tl-bad", "event_id": "ev-bad"})
        with pytest.raises(LoadError, match="Failed to load timeline"):
            store.fetch_timeline("tl-bad")

    def test_blocks_in_order(self, store):
        blocks = store.fetch_blocks("tl-wedding")
        assert [b.id for b in blocks] == [
            "b-12m",
            "b-8-10m",
            "b-6-8m",
            "b-odd",
            "b-4-6m",
            "b-3-4m",
            "b-1-2m",
            "b-2w",
        ]
        odd = blocks[3]
        assert (odd.start_date, odd.end_date) == (date(2026, 5, 1), date(2026, 5, 10))

    def test_task_fields(self, store):
        tasks = {t.id: t for t in store.fetch_tasks("tl-wedding")}
        venue = tasks["t-venue"]
        assert venue.is_skeleton
        assert venue.weight == 5
        assert venue.depends_on_task_ids == frozenset({"t-budget"})
        assert tasks["t-dress"].locked
        assert tasks["t-dress"].due_date == date(2026, 3, 15)
        assert tasks["t-budget"].done
        assert tasks["t-final"].assignee == "planner"
        assert tasks["t-guest"].depends_on_task_ids == frozenset()

    def test_malformed_dependencies(self, store):
        with pytest.raises(LoadError, match="Failed to load tasks"):
            store.fetch_tasks("tl-broken")

    def test_non_list_dependencies(self, store):
        store.query("UPDATE tasks SET depends_on_task_ids = ? WHERE id = ?", ['{"a": 1}', "t-guest"])
        with pytest.raises(LoadError, match="must be a list"):
            store.fetch_tasks("tl-wedding")


class TestWriting:
    def test_update_task(self, store):
        store.update_task(TaskDue("t-guest", date(2026, 2, 1)))
        tasks = {t.id: t for t in store.fetch_tasks("tl-wedding")}
        assert tasks["t-guest"].due_date == date(2026, 2, 1)

    def test_update_missing_row(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.update_block(BlockWindow("b-missing", date(2026, 1, 1), date(2026, 1, 2)))
        assert exc_info.value.table == "blocks"
        assert exc_info.value.row_id == "b-missing"

    def test_batch_is_all_or_nothing(self, store):
        batch = WriteBatch(
            timeline_id="tl-wedding",
            scale_factor=1.0,
            recalculated_at="2026-01-05T09:00:00+00:00",
            blocks=[BlockWindow("b-12m", date(2026, 1, 7), date(2026, 2, 22))],
            tasks=[TaskDue("t-guest", date(2026, 2, 6)), TaskDue("t-missing", date(2026, 2, 7))],
        )
        with pytest.raises(PersistenceError):
            store.apply_recalculation(batch)

        blocks = {b.id: b for b in store.fetch_blocks("tl-wedding")}
        assert blocks["b-12m"].start_date is None
        tasks = {t.id: t for t in store.fetch_tasks("tl-wedding")}
        assert tasks["t-guest"].due_date is None

    def test_batch_writes_audit_entry(self, store):
        batch = WriteBatch(
            timeline_id="tl-wedding",
            scale_factor=0.5,
            recalculated_at="2026-01-05T09:00:00+00:00",
            audit_entry={
                "timeline_id": "tl-wedding",
                "task_id": None,
                "action": "edit",
                "actor": "admin",
                "changes": {"type": "recalculation"},
                "created_at": "2026-01-05T09:00:00+00:00",
            },
        )
        store.apply_recalculation(batch)

        rows = store.query("SELECT * FROM audit_entries WHERE timeline_id = ?", ["tl-wedding"])
        assert len(rows) == 1
        assert rows[0]["changes"] == '{"type": "recalculation"}'
        assert store.fetch_timeline("tl-wedding").scale_factor == 0.5


def test_store_creates_schema_on_empty_file(tmp_path):
    store = TimelineStore(tmp_path / "empty.db")
    assert store.query("SELECT COUNT(*) AS n FROM timelines") == [{"n": 0}]
