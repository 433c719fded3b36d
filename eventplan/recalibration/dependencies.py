"""
Dependency Enforcer - push due dates past every prerequisite.

Bounded fixed-point iteration. A cycle (or a chain longer than the pass
cap) cannot settle; that is reported as converged=False with the dates
reached so far, never as an exception.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta

from eventplan.models import TaskDue
from eventplan.recalibration.canonical import DEFAULT_MAX_DEPENDENCY_PASSES


@dataclass
class EnforcementResult:
    due_dates: list[TaskDue]
    converged: bool
    passes: int


def enforce_dependencies(
    proposed: list[TaskDue],
    depends_on: Mapping[str, Iterable[str]],
    max_passes: int = DEFAULT_MAX_DEPENDENCY_PASSES,
) -> EnforcementResult:
    """
    Raise each task's due date to at least one day after its latest dependency.

    Dependencies without a proposed due date are ignored. Output keeps the
    order of *proposed*.
    """
    dates: dict[str, date] = {}
    for item in proposed:
        dates[item.task_id] = item.due_date

    edges = {
        task_id: [dep for dep in depends_on.get(task_id, ()) if dep in dates]
        for task_id in dates
    }
    edges = {task_id: deps for task_id, deps in edges.items() if deps}

    converged = not edges
    passes = 0
    while not converged and passes < max_passes:
        passes += 1
        changed = False
        for task_id, deps in edges.items():
            min_allowed = max(dates[dep] for dep in deps) + timedelta(days=1)
            if dates[task_id] < min_allowed:
                dates[task_id] = min_allowed
                changed = True
        converged = not changed

    return EnforcementResult(
        due_dates=[TaskDue(task_id, due) for task_id, due in dates.items()],
        converged=converged,
        passes=passes,
    )
