"""Records and value types used by the recalibration engine."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class Distribution(StrEnum):
    FRONTLOAD = "frontload"
    BALANCED = "balanced"
    EVEN = "even"


@dataclass(frozen=True)
class Event:
    id: str
    date: date
    name: str = ""


@dataclass
class Timeline:
    id: str
    event: Event
    title: str = ""
    scale_factor: float | None = None
    last_recalculated_at: str | None = None


@dataclass
class Block:
    id: str
    key: str
    order: int
    title: str = ""
    start_date: date | None = None
    end_date: date | None = None
    timeline_id: str | None = None


@dataclass
class Task:
    id: str
    block_id: str
    title: str
    weight: int = 1
    is_skeleton: bool = False
    locked: bool = False
    done: bool = False
    done_at: str | None = None
    due_date: date | None = None
    depends_on_task_ids: frozenset[str] = field(default_factory=frozenset)
    order: int = 0
    assignee: str = "client"
    timeline_id: str | None = None


@dataclass(frozen=True)
class BlockOffsets:
    """Canonical months-before-event for a block; start >= end >= 0."""

    start_months: float
    end_months: float


@dataclass(frozen=True)
class BlockWindow:
    block_id: str
    start_date: date
    end_date: date

    def to_dict(self) -> dict:
        return {
            "id": self.block_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class TaskDue:
    task_id: str
    due_date: date

    def to_dict(self) -> dict:
        return {"id": self.task_id, "due_date": self.due_date.isoformat()}


@dataclass(frozen=True)
class RecalculationOptions:
    respect_locks: bool = True
    distribution: Distribution = Distribution.FRONTLOAD
    dry_run: bool = False
