"""
Pydantic request/response models for the timeline API.

These give FastAPI the type information it needs to generate accurate
OpenAPI schemas.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from eventplan.models import Distribution

# ==== Recalculation ====


class RecalculateRequest(BaseModel):
    """Options for a recalculation. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True)

    respect_locks: bool = Field(
        default=True, alias="respectLocks", description="Keep locked tasks' due dates"
    )
    distribution: Distribution = Field(
        default=Distribution.FRONTLOAD, description="frontload | balanced | even"
    )
    dry_run: bool = Field(default=False, alias="dryRun", description="Compute without writing")


class BlockWindowResponse(BaseModel):
    id: str
    start_date: str = Field(description="YYYY-MM-DD")
    end_date: str = Field(description="YYYY-MM-DD")


class TaskDueResponse(BaseModel):
    id: str
    due_date: str = Field(description="YYYY-MM-DD")


class DiagnosticResponse(BaseModel):
    code: str = Field(description="unresolvable_block | dependency_not_converged | persistence_failed")
    subject_id: str | None = None
    message: str


class RecalculateResponse(BaseModel):
    """Result of a recalculation."""

    success: bool
    blocks: list[BlockWindowResponse] = Field(default_factory=list)
    tasks: list[TaskDueResponse] = Field(default_factory=list)
    scale_factor: float
    lead_time_months: int
    converged: bool = Field(description="False when dependency ordering hit the pass cap")
    diagnostics: list[DiagnosticResponse] = Field(default_factory=list)


# ==== Progress ====


class ProgressCounts(BaseModel):
    completed: int = 0
    total: int = 0
    percentage: int = 0


class ProgressResponse(BaseModel):
    overall: ProgressCounts
    by_block: dict[str, ProgressCounts] = Field(default_factory=dict)
    by_assignee: dict[str, ProgressCounts] = Field(default_factory=dict)
    overdue_task_ids: list[str] = Field(default_factory=list)


# ==== List Envelope ====


class ListResponse(BaseModel):
    """Standard list endpoint response."""

    items: list[Any] = Field(default_factory=list, description="Result items")
    total: int = Field(description="Total count")


# ==== Health Check ====


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or error")
    timestamp: str = Field(description="ISO timestamp")
