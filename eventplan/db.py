"""
Centralized Database Access for the event planner.

Single source of truth for:
- DB path resolution
- Connection factory
- Schema creation
- Startup validation

ALL code must use this module for DB access. No direct sqlite3.connect() elsewhere.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from eventplan import paths

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ``order`` is reserved in SQL, so ordering columns are named sort_order.
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS timelines (
    id TEXT PRIMARY KEY,
    event_id TEXT NOT NULL REFERENCES events(id),
    title TEXT NOT NULL DEFAULT '',
    scale_factor REAL,
    last_recalculated_at TEXT
);

CREATE TABLE IF NOT EXISTS blocks (
    id TEXT PRIMARY KEY,
    timeline_id TEXT NOT NULL REFERENCES timelines(id),
    key TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0,
    start_date TEXT,
    end_date TEXT
);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    timeline_id TEXT NOT NULL REFERENCES timelines(id),
    block_id TEXT NOT NULL REFERENCES blocks(id),
    title TEXT NOT NULL DEFAULT '',
    weight INTEGER NOT NULL DEFAULT 1,
    is_skeleton INTEGER NOT NULL DEFAULT 0,
    locked INTEGER NOT NULL DEFAULT 0,
    done INTEGER NOT NULL DEFAULT 0,
    done_at TEXT,
    due_date TEXT,
    depends_on_task_ids TEXT NOT NULL DEFAULT '[]',
    sort_order INTEGER NOT NULL DEFAULT 0,
    assignee TEXT NOT NULL DEFAULT 'client'
);

CREATE TABLE IF NOT EXISTS audit_entries (
    id TEXT PRIMARY KEY,
    timeline_id TEXT NOT NULL,
    task_id TEXT,
    action TEXT NOT NULL,
    actor TEXT NOT NULL,
    changes TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_blocks_timeline ON blocks(timeline_id, sort_order);
CREATE INDEX IF NOT EXISTS idx_tasks_timeline ON tasks(timeline_id, sort_order);
CREATE INDEX IF NOT EXISTS idx_audit_timeline ON audit_entries(timeline_id, created_at);
"""

CRITICAL_TABLES = ("events", "timelines", "blocks", "tasks", "audit_entries")

# ============================================================
# DB PATH RESOLUTION
# ============================================================


def get_db_path() -> Path:
    """Get the canonical DB path. See paths.db_path() for resolution order."""
    return paths.db_path()


# ============================================================
# CONNECTION FACTORY
# ============================================================


@contextmanager
def get_connection(
    db_path: str | Path | None = None,
    row_factory: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a database connection with proper setup.

    Commits on clean exit, rolls back if the block raises.

    Usage:
        with get_connection() as conn:
            conn.execute(...)
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path))
    if row_factory:
        conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


# ============================================================
# SCHEMA
# ============================================================


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
    return cursor.fetchone() is not None


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Get current schema version from PRAGMA user_version."""
    cursor = conn.execute("PRAGMA user_version")
    return cursor.fetchone()[0]


def ensure_schema(conn: sqlite3.Connection) -> int:
    """Create missing tables and indexes. Idempotent. Returns schema version."""
    conn.executescript(SCHEMA_SQL)
    conn.execute(f"PRAGMA user_version = {int(SCHEMA_VERSION)}")
    return SCHEMA_VERSION


def init_db(db_path: str | Path | None = None) -> dict:
    """
    Create the schema at *db_path* (default: canonical path) and report state.

    Safe to call multiple times.
    """
    path = Path(db_path) if db_path else get_db_path()
    logger.info("Initializing DB at %s (exists=%s)", path, path.exists())

    with get_connection(path) as conn:
        version_before = get_schema_version(conn)
        version = ensure_schema(conn)
        missing = [t for t in CRITICAL_TABLES if not table_exists(conn, t)]

    for table in missing:
        logger.error("MISSING %s", table)

    logger.info("Schema version %s -> %s", version_before, version)
    return {
        "db_path": str(path),
        "previous_version": version_before,
        "schema_version": version,
        "missing_tables": missing,
    }
