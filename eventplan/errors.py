"""
Error taxonomy for timeline recalculation.

Only load-phase failures abort a run. Everything downstream degrades to a
Diagnostic on the result instead of raising.
"""

from dataclasses import dataclass
from enum import StrEnum


class RecalculationError(Exception):
    """Base class for errors that abort a recalculation before any write."""

    status_code = 500

    def __init__(self, message: str, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.phase = phase


class InvalidRequestError(RecalculationError):
    """Missing or malformed timeline id / options."""

    status_code = 400


class NotFoundError(RecalculationError):
    """Timeline or its event does not exist."""

    status_code = 404


class LoadError(RecalculationError):
    """Store unreachable or records malformed while loading."""

    status_code = 500


class PersistenceError(Exception):
    """A single write failed. Never aborts a run."""

    def __init__(self, table: str, row_id: str, message: str):
        super().__init__(f"{table}.{row_id}: {message}")
        self.table = table
        self.row_id = row_id


class DiagnosticCode(StrEnum):
    UNRESOLVABLE_BLOCK = "unresolvable_block"
    DEPENDENCY_NOT_CONVERGED = "dependency_not_converged"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass(frozen=True)
class Diagnostic:
    """A per-item degradation reported alongside a successful result."""

    code: DiagnosticCode
    subject_id: str | None
    message: str

    def to_dict(self) -> dict:
        return {"code": str(self.code), "subject_id": self.subject_id, "message": self.message}
