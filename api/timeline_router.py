"""
Timeline API Router — recalculation, progress and audit history.

Endpoints:
- POST /api/timelines/{timeline_id}/recalculate — rescale blocks and re-date tasks
- GET /api/timelines/{timeline_id}/progress — completion overall, per block, per assignee
- GET /api/timelines/{timeline_id}/audit — audit entries, newest first
"""

import logging
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

from api.response_models import (
    ListResponse,
    ProgressResponse,
    RecalculateRequest,
    RecalculateResponse,
)
from eventplan import config as app_config
from eventplan import paths
from eventplan.audit import AuditLog
from eventplan.errors import RecalculationError
from eventplan.models import RecalculationOptions
from eventplan.progress import calculate_progress
from eventplan.recalibration import EngineConfig, Recalibrator, load_engine_config
from eventplan.store import TimelineStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timelines", tags=["timelines"])

_engine_config: EngineConfig | None = None


def get_timeline_store() -> TimelineStore:
    return get_store()


def get_engine_config() -> EngineConfig:
    """Load the engine config once per process."""
    global _engine_config
    if _engine_config is None:
        config_path = app_config.ENGINE_CONFIG_PATH or paths.engine_config_path()
        _engine_config = load_engine_config(Path(config_path))
    return _engine_config


def get_recalibrator(
    store: TimelineStore = Depends(get_timeline_store),
    engine_config: EngineConfig = Depends(get_engine_config),
) -> Recalibrator:
    return Recalibrator(store, engine_config)


def get_today() -> date:
    return date.today()


@router.post("/{timeline_id}/recalculate", response_model=RecalculateResponse)
def recalculate_timeline(
    timeline_id: str,
    request: RecalculateRequest | None = None,
    recalibrator: Recalibrator = Depends(get_recalibrator),
    today: date = Depends(get_today),
):
    """Recalculate block windows and task due dates for a timeline."""
    request = request or RecalculateRequest()
    options = RecalculationOptions(
        respect_locks=request.respect_locks,
        distribution=request.distribution,
        dry_run=request.dry_run,
    )
    try:
        result = recalibrator.recalculate(timeline_id, options, today=today)
        return result.to_dict()
    except RecalculationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        logger.exception("Recalculation error for timeline %s", timeline_id)
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error") from e


@router.get("/{timeline_id}/progress", response_model=ProgressResponse)
def timeline_progress(
    timeline_id: str,
    store: TimelineStore = Depends(get_timeline_store),
    today: date = Depends(get_today),
):
    """Completion and overdue tasks for a timeline."""
    try:
        store.fetch_timeline(timeline_id)
        blocks = store.fetch_blocks(timeline_id)
        tasks = store.fetch_tasks(timeline_id)
    except RecalculationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return calculate_progress(blocks, tasks, today).to_dict()


@router.get("/{timeline_id}/audit", response_model=ListResponse)
def timeline_audit(
    timeline_id: str,
    limit: int = Query(default=100, ge=1, le=1000),
    store: TimelineStore = Depends(get_timeline_store),
):
    """Audit entries for a timeline, newest first."""
    entries = AuditLog(store).entries_for_timeline(timeline_id, limit=limit)
    return {"items": [e.to_dict() for e in entries], "total": len(entries)}
