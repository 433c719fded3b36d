"""
Progress tracking for a timeline: overall, per block and per assignee.

Percentages are whole numbers; an empty group is 0%. Rows imported from the
source app carry "js" for the planner and are counted under "planner".
"""

from dataclasses import dataclass, field
from datetime import date

from eventplan.models import Block, Task

ASSIGNEES = ("client", "planner", "both")
ASSIGNEE_ALIASES = {"js": "planner"}


@dataclass
class Progress:
    completed: int = 0
    total: int = 0

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return round(self.completed / self.total * 100)

    def add(self, task: Task) -> None:
        self.total += 1
        if task.done:
            self.completed += 1

    def to_dict(self) -> dict:
        return {"completed": self.completed, "total": self.total, "percentage": self.percentage}


@dataclass
class TimelineProgress:
    overall: Progress = field(default_factory=Progress)
    by_block: dict[str, Progress] = field(default_factory=dict)
    by_assignee: dict[str, Progress] = field(default_factory=dict)
    overdue_task_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "overall": self.overall.to_dict(),
            "by_block": {k: v.to_dict() for k, v in self.by_block.items()},
            "by_assignee": {k: v.to_dict() for k, v in self.by_assignee.items()},
            "overdue_task_ids": list(self.overdue_task_ids),
        }


def calculate_progress(blocks: list[Block], tasks: list[Task], today: date) -> TimelineProgress:
    """Completion counts plus tasks past due and not done."""
    progress = TimelineProgress(
        by_block={b.id: Progress() for b in sorted(blocks, key=lambda b: b.order)},
        by_assignee={a: Progress() for a in ASSIGNEES},
    )

    for task in tasks:
        progress.overall.add(task)
        if task.block_id in progress.by_block:
            progress.by_block[task.block_id].add(task)
        assignee = ASSIGNEE_ALIASES.get(task.assignee, task.assignee)
        progress.by_assignee.setdefault(assignee, Progress()).add(task)
        if not task.done and task.due_date is not None and task.due_date < today:
            progress.overdue_task_ids.append(task.id)

    return progress
