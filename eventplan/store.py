"""
Timeline Store - the record store the recalibration engine reads and writes.

SQLite for persistence. The engine only ever:
- reads a timeline (with its event), its blocks and its tasks
- updates block windows, task due dates and timeline recalculation fields
- appends audit entries
"""

import json
import logging
import sqlite3
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from eventplan import db as db_module
from eventplan import safe_sql
from eventplan.errors import LoadError, NotFoundError, PersistenceError
from eventplan.models import Block, BlockWindow, Event, Task, TaskDue, Timeline

logger = logging.getLogger(__name__)

_LOAD_ERRORS = (sqlite3.Error, ValueError, KeyError, TypeError)


@dataclass
class WriteBatch:
    """Everything one recalculation writes, applied as a unit."""

    timeline_id: str
    scale_factor: float
    recalculated_at: str
    blocks: list[BlockWindow] = field(default_factory=list)
    tasks: list[TaskDue] = field(default_factory=list)
    audit_entry: dict | None = None


def _parse_date(value: str | None) -> date | None:
    if value in (None, ""):
        return None
    return date.fromisoformat(value)


def _encode(value: Any) -> Any:
    return json.dumps(value) if isinstance(value, dict | list) else value


class TimelineStore:
    """
    Record store for events, timelines, blocks, tasks and audit entries.
    """

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = str(db_path or db_module.get_db_path())
        logger.info("TimelineStore initializing with DB: %s", self.db_path)
        with self._get_conn() as conn:
            db_module.ensure_schema(conn)

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        with db_module.get_connection(self.db_path) as conn:
            yield conn

    # ==================== Generic ====================

    def insert(self, table: str, data: dict) -> str:
        """Insert (or replace) a row. Returns ID."""
        columns = list(data.keys())
        values = [_encode(v) for v in data.values()]
        with self._get_conn() as conn:
            conn.execute(safe_sql.insert_or_replace(table, columns), values)
        return data.get("id", "")

    def query(self, sql: str, params: list | None = None) -> list[dict]:
        """Execute raw query. Returns list of dicts."""
        with self._get_conn() as conn:
            rows = conn.execute(sql, params or []).fetchall()
            return [dict(row) for row in rows]

    # ==================== Loading ====================

    def fetch_timeline(self, timeline_id: str) -> Timeline:
        """
        Load a timeline with its event.

        Raises:
            NotFoundError: timeline or event missing
            LoadError: store failure or malformed event date
        """
        try:
            with self._get_conn() as conn:
                row = conn.execute(
                    safe_sql.select("timelines", where="id = ?"), [timeline_id]
                ).fetchone()
                if row is None:
                    raise NotFoundError("Timeline not found", phase="loading")
                event_row = conn.execute(
                    safe_sql.select("events", where="id = ?"), [row["event_id"]]
                ).fetchone()
            if event_row is None:
                raise NotFoundError("Event not found", phase="loading")

            event = Event(
                id=event_row["id"],
                date=date.fromisoformat(event_row["date"]),
                name=event_row["name"] or "",
            )
            return Timeline(
                id=row["id"],
                event=event,
                title=row["title"] or "",
                scale_factor=row["scale_factor"],
                last_recalculated_at=row["last_recalculated_at"],
            )
        except _LOAD_ERRORS as e:
            raise LoadError(f"Failed to load timeline: {e}", phase="loading") from e

    def fetch_blocks(self, timeline_id: str) -> list[Block]:
        """Blocks of a timeline in display order."""
        try:
            rows = self.query(
                safe_sql.select("blocks", where="timeline_id = ?", order_by="sort_order, id"),
                [timeline_id],
            )
            return [
                Block(
                    id=r["id"],
                    key=r["key"],
                    order=int(r["sort_order"]),
                    title=r["title"] or "",
                    start_date=_parse_date(r["start_date"]),
                    end_date=_parse_date(r["end_date"]),
                    timeline_id=r["timeline_id"],
                )
                for r in rows
            ]
        except _LOAD_ERRORS as e:
            raise LoadError(f"Failed to load blocks: {e}", phase="loading") from e

    def fetch_tasks(self, timeline_id: str) -> list[Task]:
        """Tasks of a timeline in display order."""
        try:
            rows = self.query(
                safe_sql.select("tasks", where="timeline_id = ?", order_by="sort_order, id"),
                [timeline_id],
            )
            return [self._row_to_task(r) for r in rows]
        except (*_LOAD_ERRORS, json.JSONDecodeError) as e:
            raise LoadError(f"Failed to load tasks: {e}", phase="loading") from e

    def _row_to_task(self, row: dict) -> Task:
        depends_on = json.loads(row["depends_on_task_ids"] or "[]")
        if not isinstance(depends_on, list):
            raise ValueError(f"task {row['id']}: depends_on_task_ids must be a list")
        return Task(
            id=row["id"],
            block_id=row["block_id"],
            title=row["title"] or "",
            weight=int(row["weight"]),
            is_skeleton=bool(row["is_skeleton"]),
            locked=bool(row["locked"]),
            done=bool(row["done"]),
            done_at=row["done_at"],
            due_date=_parse_date(row["due_date"]),
            depends_on_task_ids=frozenset(str(d) for d in depends_on),
            order=int(row["sort_order"]),
            assignee=row["assignee"] or "client",
            timeline_id=row["timeline_id"],
        )

    # ==================== Writing ====================

    def _execute_update(self, conn, table: str, row_id: str, data: dict) -> None:
        result = conn.execute(
            safe_sql.update(table, list(data.keys())), [*map(_encode, data.values()), row_id]
        )
        if result.rowcount == 0:
            raise PersistenceError(table, row_id, "row not found")

    def _write(self, table: str, row_id: str, data: dict) -> None:
        try:
            with self._get_conn() as conn:
                self._execute_update(conn, table, row_id, data)
        except sqlite3.Error as e:
            raise PersistenceError(table, row_id, str(e)) from e

    def update_block(self, window: BlockWindow) -> None:
        self._write(
            "blocks",
            window.block_id,
            {"start_date": window.start_date.isoformat(), "end_date": window.end_date.isoformat()},
        )

    def update_task(self, due: TaskDue) -> None:
        self._write("tasks", due.task_id, {"due_date": due.due_date.isoformat()})

    def update_timeline(self, timeline_id: str, scale_factor: float, recalculated_at: str) -> None:
        self._write(
            "timelines",
            timeline_id,
            {"scale_factor": scale_factor, "last_recalculated_at": recalculated_at},
        )

    def insert_audit_entry(self, entry: dict) -> str:
        """Append an audit entry. Returns its ID."""
        row = {
            "id": entry.get("id") or f"audit-{uuid.uuid4().hex[:16]}",
            "timeline_id": entry["timeline_id"],
            "task_id": entry.get("task_id"),
            "action": entry["action"],
            "actor": entry["actor"],
            "changes": entry.get("changes", {}),
            "created_at": entry["created_at"],
        }
        try:
            with self._get_conn() as conn:
                conn.execute(
                    safe_sql.insert("audit_entries", list(row.keys())),
                    [_encode(v) for v in row.values()],
                )
        except sqlite3.Error as e:
            raise PersistenceError("audit_entries", row["id"], str(e)) from e
        return row["id"]

    def apply_recalculation(self, batch: WriteBatch) -> None:
        """
        Apply a whole recalculation in one transaction.

        Raises:
            PersistenceError: nothing was written
        """
        try:
            with self._get_conn() as conn:
                for window in batch.blocks:
                    self._execute_update(
                        conn,
                        "blocks",
                        window.block_id,
                        {
                            "start_date": window.start_date.isoformat(),
                            "end_date": window.end_date.isoformat(),
                        },
                    )
                for due in batch.tasks:
                    self._execute_update(
                        conn, "tasks", due.task_id, {"due_date": due.due_date.isoformat()}
                    )
                self._execute_update(
                    conn,
                    "timelines",
                    batch.timeline_id,
                    {
                        "scale_factor": batch.scale_factor,
                        "last_recalculated_at": batch.recalculated_at,
                    },
                )
                if batch.audit_entry is not None:
                    row = dict(batch.audit_entry)
                    row.setdefault("id", f"audit-{uuid.uuid4().hex[:16]}")
                    conn.execute(
                        safe_sql.insert("audit_entries", list(row.keys())),
                        [_encode(v) for v in row.values()],
                    )
        except sqlite3.Error as e:
            raise PersistenceError("batch", batch.timeline_id, str(e)) from e


# Singleton accessor
_store: TimelineStore | None = None


def get_store(db_path: str | None = None) -> TimelineStore:
    """Get the process-wide store."""
    global _store
    if _store is None:
        _store = TimelineStore(db_path)
    return _store
