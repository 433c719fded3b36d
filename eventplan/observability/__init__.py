"""
Observability module: structured logging and request IDs.

Usage:
    from eventplan.observability import configure_logging, request_scope

    configure_logging("INFO")

    with request_scope():
        logger.info("Recalculating", extra={"timeline_id": "tl-1"})
"""

from .context import current_request_id, new_request_id, request_scope
from .logging import CorrelationIdMiddleware, HumanFormatter, JSONFormatter, configure_logging

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    "current_request_id",
    "new_request_id",
    "request_scope",
]
