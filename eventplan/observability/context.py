"""
Request ID held in a context variable so log lines from one HTTP request
(or one CLI run) can be correlated.
"""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "eventplan_request_id", default=None
)


def new_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


def current_request_id() -> str | None:
    return _request_id.get()


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind *request_id* (or a fresh one) until the block exits. Yields the ID."""
    token = _request_id.set(request_id or new_request_id())
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)
