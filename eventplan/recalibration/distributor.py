"""
Task Distributor - due dates for the tasks inside one block window.

Strategies:
- frontload: skeleton tasks first, then heavier tasks; skeleton tasks are
  also pulled to 70% of their slot offset
- balanced: same ordering as frontload, plain slot offsets
- even: title order only, plain slot offsets
"""

import math
from datetime import date, timedelta

from eventplan.models import Distribution, Task, TaskDue

SKELETON_PULL = 0.7


def _title_key(task: Task) -> tuple[str, str]:
    return (task.title.casefold(), task.title)


def sort_for_distribution(tasks: list[Task], distribution: Distribution) -> list[Task]:
    if distribution == Distribution.EVEN:
        return sorted(tasks, key=_title_key)
    return sorted(tasks, key=lambda t: (not t.is_skeleton, -t.weight, *_title_key(t)))


def distribute_tasks(
    tasks: list[Task],
    start_date: date,
    end_date: date,
    distribution: Distribution = Distribution.FRONTLOAD,
    respect_locks: bool = True,
) -> list[TaskDue]:
    """
    Spread unlocked tasks across [start_date, end_date].

    Locked tasks (when respect_locks) keep their due date and are only
    returned if they have one.
    """
    distribution = Distribution(distribution)
    locked = [t for t in tasks if respect_locks and t.locked]
    unlocked = [t for t in tasks if not (respect_locks and t.locked)]

    result = [TaskDue(t.id, t.due_date) for t in locked if t.due_date is not None]
    if not unlocked:
        return result

    ordered = sort_for_distribution(unlocked, distribution)
    total_days = (end_date - start_date).days

    if total_days <= 1:
        result.extend(TaskDue(t.id, start_date) for t in ordered)
        return result

    stride = total_days / len(ordered)
    for index, task in enumerate(ordered):
        if distribution == Distribution.FRONTLOAD and task.is_skeleton:
            offset = math.floor(stride * index * SKELETON_PULL)
        else:
            offset = math.floor(stride * index)
        due = min(start_date + timedelta(days=offset), end_date)
        result.append(TaskDue(task.id, due))

    return result
