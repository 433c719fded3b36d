"""
Audit Trail

Read access to the append-only audit_entries table. Entries are written by
the recalibration orchestrator; nothing here mutates or deletes them.
"""

import json
from dataclasses import dataclass
from typing import Any

from eventplan import safe_sql
from eventplan.store import TimelineStore


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timeline_id: str
    task_id: str | None
    action: str
    actor: str
    changes: dict[str, Any]
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timeline_id": self.timeline_id,
            "task_id": self.task_id,
            "action": self.action,
            "actor": self.actor,
            "changes": self.changes,
            "created_at": self.created_at,
        }


def _row_to_entry(row: dict) -> AuditEntry:
    return AuditEntry(
        id=row["id"],
        timeline_id=row["timeline_id"],
        task_id=row["task_id"],
        action=row["action"],
        actor=row["actor"],
        changes=json.loads(row["changes"] or "{}"),
        created_at=row["created_at"],
    )


class AuditLog:
    """Query the audit trail of a timeline."""

    def __init__(self, store: TimelineStore):
        self.store = store

    def entries_for_timeline(self, timeline_id: str, limit: int = 100) -> list[AuditEntry]:
        """Newest first."""
        rows = self.store.query(
            safe_sql.select(
                "audit_entries", where="timeline_id = ?", order_by="created_at DESC, rowid DESC"
            )
            + " LIMIT ?",
            [timeline_id, limit],
        )
        return [_row_to_entry(r) for r in rows]

    def last_recalculation(self, timeline_id: str) -> AuditEntry | None:
        for entry in self.entries_for_timeline(timeline_id, limit=1000):
            if entry.changes.get("type") == "recalculation":
                return entry
        return None
