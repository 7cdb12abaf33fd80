"""Request correlation context.

A correlation id is bound per CLI invocation or tool call so that log lines
and response envelopes of one operation can be matched up.
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "taskgraph_correlation_id", default=""
)


def generate_correlation_id(prefix: str = "req") -> str:
    """Return a new id of the form ``<prefix>_<12 hex chars>``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> str:
    """Return the correlation id bound to the current context, or ``""``."""
    return _correlation_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None, *, prefix: str = "req") -> Iterator[str]:
    """Bind a correlation id for the duration of the ``with`` block."""
    value = correlation_id or generate_correlation_id(prefix)
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)
