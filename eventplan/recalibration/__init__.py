"""
Timeline Recalibration

Rescales a fixed catalog of canonical planning blocks ("12 months out",
"6-8 months out", "2 weeks out") to the lead time actually left before an
event, then spreads task due dates inside each block.

Pipeline:
- lead_time: months until the event and the scale factor against 12 months
- canonical: block key -> canonical months-before-event offsets
- block_scheduler: concrete, ordered, non-overlapping block windows
- distributor: task due dates inside a window (frontload / balanced / even)
- dependencies: push tasks after their prerequisites (bounded fixed point)
- orchestrator: load, run the above, persist, audit

Invariants after a run:
- Block windows have start < end and never move backwards in order
- Locked tasks keep their due date
- Every dependency edge task -> dep has due(task) > due(dep) when converged
"""

from eventplan.models import (
    Block,
    BlockOffsets,
    BlockWindow,
    Distribution,
    Event,
    RecalculationOptions,
    Task,
    TaskDue,
    Timeline,
)

from .block_scheduler import round_to_week, schedule_blocks
from .canonical import EngineConfig, load_engine_config, resolve_block_offsets
from .dependencies import EnforcementResult, enforce_dependencies
from .distributor import distribute_tasks
from .lead_time import calculate_lead_time_months, calculate_scale_factor
from .orchestrator import RecalculationPhase, RecalculationResult, Recalibrator

__all__ = [
    "Block",
    "BlockOffsets",
    "BlockWindow",
    "Distribution",
    "EngineConfig",
    "EnforcementResult",
    "Event",
    "RecalculationOptions",
    "RecalculationPhase",
    "RecalculationResult",
    "Recalibrator",
    "Task",
    "TaskDue",
    "Timeline",
    "calculate_lead_time_months",
    "calculate_scale_factor",
    "distribute_tasks",
    "enforce_dependencies",
    "load_engine_config",
    "resolve_block_offsets",
    "round_to_week",
    "schedule_blocks",
]
