"""
Recalibration Orchestrator

Runs one recalculation of a timeline in phase order:

  idle -> loading -> scheduling -> distributing -> enforcing -> persisting -> done
  (any phase) -> failed

Phase state lives in a PhaseTimer per call, so one Recalibrator can serve
concurrent requests.

Only loading can fail the run. Unresolvable blocks, non-converging
dependencies and failed writes become Diagnostics on a successful result.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum

from eventplan import config as app_config
from eventplan.errors import (
    Diagnostic,
    DiagnosticCode,
    InvalidRequestError,
    PersistenceError,
    RecalculationError,
)
from eventplan.models import (
    Block,
    BlockWindow,
    RecalculationOptions,
    Task,
    TaskDue,
    Timeline,
)
from eventplan.recalibration.block_scheduler import schedule_blocks
from eventplan.recalibration.canonical import EngineConfig
from eventplan.recalibration.dependencies import enforce_dependencies
from eventplan.recalibration.distributor import distribute_tasks
from eventplan.recalibration.lead_time import calculate_lead_time_months, calculate_scale_factor
from eventplan.store import TimelineStore, WriteBatch

logger = logging.getLogger(__name__)


class RecalculationPhase(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SCHEDULING = "scheduling"
    DISTRIBUTING = "distributing"
    ENFORCING = "enforcing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PhaseTimer:
    """Phase and per-phase timings of a single run. One per recalculate() call."""

    phase: RecalculationPhase = RecalculationPhase.IDLE
    started: float = 0.0
    durations: dict[str, int] = field(default_factory=dict)

    def enter(self, phase: RecalculationPhase) -> None:
        now = time.monotonic()
        if self.phase not in (RecalculationPhase.IDLE, RecalculationPhase.FAILED):
            self.durations[str(self.phase)] = int((now - self.started) * 1000)
        self.phase = phase
        self.started = now


@dataclass
class RecalculationResult:
    timeline_id: str
    blocks: list[BlockWindow]
    tasks: list[TaskDue]
    scale_factor: float
    lead_time_months: int
    converged: bool
    dependency_passes: int = 0
    persisted: bool = False
    diagnostics: list[Diagnostic] = field(default_factory=list)
    phase_durations_ms: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "blocks": [w.to_dict() for w in self.blocks],
            "tasks": [t.to_dict() for t in self.tasks],
            "scale_factor": self.scale_factor,
            "lead_time_months": self.lead_time_months,
            "converged": self.converged,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class Recalibrator:
    """Loads a timeline, recomputes every date in it and writes the result back."""

    def __init__(
        self,
        store: TimelineStore,
        engine_config: EngineConfig | None = None,
        actor: str = app_config.AUDIT_ACTOR,
    ):
        self.store = store
        self.engine_config = engine_config or EngineConfig()
        self.actor = actor

    def recalculate(
        self,
        timeline_id: str,
        options: RecalculationOptions | None = None,
        *,
        today: date,
        now: datetime | None = None,
    ) -> RecalculationResult:
        """
        Recalculate every block window and task due date of a timeline.

        Args:
            timeline_id: Timeline to recalculate
            options: Lock handling, distribution strategy, dry run
            today: Reference day for lead time and the "not before today" floor
            now: Timestamp recorded as last_recalculated_at (defaults to now, UTC)

        Raises:
            InvalidRequestError: blank timeline id
            NotFoundError: timeline or event missing
            LoadError: blocks/tasks could not be loaded
        """
        options = options or RecalculationOptions(
            distribution=self.engine_config.default_distribution
        )
        run = PhaseTimer()

        try:
            if not timeline_id or not timeline_id.strip():
                raise InvalidRequestError("Timeline ID required", phase=str(run.phase))

            logger.info(
                "Recalculating timeline %s (distribution=%s, respect_locks=%s, dry_run=%s)",
                timeline_id,
                options.distribution,
                options.respect_locks,
                options.dry_run,
            )

            run.enter(RecalculationPhase.LOADING)
            timeline = self.store.fetch_timeline(timeline_id)
            blocks = self.store.fetch_blocks(timeline_id)
            tasks = self.store.fetch_tasks(timeline_id)

            result = self._compute(run, timeline, blocks, tasks, options, today)

            run.enter(RecalculationPhase.PERSISTING)
            if options.dry_run:
                logger.info("Dry run: skipping writes for timeline %s", timeline_id)
            else:
                recalculated_at = (now or datetime.now(UTC)).isoformat()
                result.diagnostics.extend(self._persist(result, options, recalculated_at))
                result.persisted = True

            run.enter(RecalculationPhase.DONE)
        except RecalculationError as e:
            if e.phase is None:
                e.phase = str(run.phase)
            logger.warning("Recalculation of %s failed in %s: %s", timeline_id, e.phase, e)
            run.phase = RecalculationPhase.FAILED
            raise

        result.phase_durations_ms = dict(run.durations)
        logger.info(
            "Recalculated timeline %s: %d blocks, %d tasks, scale=%.3f, converged=%s, %d diagnostics",
            timeline_id,
            len(result.blocks),
            len(result.tasks),
            result.scale_factor,
            result.converged,
            len(result.diagnostics),
        )
        return result

    def _compute(
        self,
        run: PhaseTimer,
        timeline: Timeline,
        blocks: list[Block],
        tasks: list[Task],
        options: RecalculationOptions,
        today: date,
    ) -> RecalculationResult:
        cfg = self.engine_config
        diagnostics: list[Diagnostic] = []
        event_date = timeline.event.date

        run.enter(RecalculationPhase.SCHEDULING)
        lead_time_months = calculate_lead_time_months(event_date, today)
        scale_factor = calculate_scale_factor(lead_time_months, cfg.canonical_horizon_months)
        outcome = schedule_blocks(event_date, blocks, scale_factor, today, cfg.catalog)

        keys = {b.id: b.key for b in blocks}
        for block_id in outcome.skipped:
            diagnostics.append(
                Diagnostic(
                    DiagnosticCode.UNRESOLVABLE_BLOCK,
                    block_id,
                    f"Block key {keys[block_id]!r} matches no canonical block; dates left unchanged",
                )
            )

        run.enter(RecalculationPhase.DISTRIBUTING)
        tasks_by_block: dict[str, list[Task]] = defaultdict(list)
        for task in tasks:
            tasks_by_block[task.block_id].append(task)

        proposed: list[TaskDue] = []
        for window in outcome.windows:
            block_tasks = tasks_by_block.get(window.block_id)
            if not block_tasks:
                continue
            proposed.extend(
                distribute_tasks(
                    block_tasks,
                    window.start_date,
                    window.end_date,
                    options.distribution,
                    options.respect_locks,
                )
            )

        run.enter(RecalculationPhase.ENFORCING)
        enforcement = enforce_dependencies(
            proposed,
            {t.id: t.depends_on_task_ids for t in tasks},
            max_passes=cfg.max_dependency_passes,
        )
        if not enforcement.converged:
            logger.warning(
                "Dependency enforcement for timeline %s did not converge after %d passes",
                timeline.id,
                enforcement.passes,
            )
            diagnostics.append(
                Diagnostic(
                    DiagnosticCode.DEPENDENCY_NOT_CONVERGED,
                    timeline.id,
                    f"Dependency ordering not settled after {enforcement.passes} passes "
                    "(cycle or very deep chain); best-effort dates returned",
                )
            )

        return RecalculationResult(
            timeline_id=timeline.id,
            blocks=outcome.windows,
            tasks=enforcement.due_dates,
            scale_factor=scale_factor,
            lead_time_months=lead_time_months,
            converged=enforcement.converged,
            dependency_passes=enforcement.passes,
            diagnostics=diagnostics,
        )

    def _audit_entry(
        self, result: RecalculationResult, options: RecalculationOptions, recalculated_at: str
    ) -> dict:
        return {
            "timeline_id": result.timeline_id,
            "task_id": None,
            "action": "edit",
            "actor": self.actor,
            "changes": {
                "type": "recalculation",
                "lead_time_months": result.lead_time_months,
                "scale_factor": result.scale_factor,
                "distribution": str(options.distribution),
                "respect_locks": options.respect_locks,
                "converged": result.converged,
            },
            "created_at": recalculated_at,
        }

    def _persist(
        self, result: RecalculationResult, options: RecalculationOptions, recalculated_at: str
    ) -> list[Diagnostic]:
        """Write the result atomically, falling back to record-by-record writes."""
        audit_entry = self._audit_entry(result, options, recalculated_at)
        batch = WriteBatch(
            timeline_id=result.timeline_id,
            scale_factor=result.scale_factor,
            recalculated_at=recalculated_at,
            blocks=result.blocks,
            tasks=result.tasks,
            audit_entry=audit_entry,
        )
        try:
            self.store.apply_recalculation(batch)
            return []
        except PersistenceError as e:
            logger.warning(
                "Batch write for timeline %s failed (%s); writing records individually",
                result.timeline_id,
                e,
            )

        writes = [(w.block_id, lambda w=w: self.store.update_block(w)) for w in result.blocks]
        writes += [(t.task_id, lambda t=t: self.store.update_task(t)) for t in result.tasks]
        writes.append(
            (
                result.timeline_id,
                lambda: self.store.update_timeline(
                    result.timeline_id, result.scale_factor, recalculated_at
                ),
            )
        )
        writes.append((result.timeline_id, lambda: self.store.insert_audit_entry(audit_entry)))

        diagnostics = []
        for subject_id, write in writes:
            try:
                write()
            except PersistenceError as e:
                logger.warning("Write failed during recalculation: %s", e)
                diagnostics.append(
                    Diagnostic(DiagnosticCode.PERSISTENCE_FAILED, subject_id, str(e))
                )
        return diagnostics
