"""Logging context utilities for structured logging.

Context set here is mirrored into structlog's contextvars so that every
logger call made while it is active (including from services that never
touch this module) carries the same fields, e.g. the invocation id.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

# Use None as default to avoid mutable default value issues
_log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)


def get_log_context() -> dict[str, Any]:
    """Get the current logging context.

    Returns:
        Dict containing the current logging context
    """
    context: dict[str, Any] | None = _log_context.get()
    if context is None:
        context = {}
        _log_context.set(context)
    return context.copy()


def set_log_context(context: dict[str, Any]) -> None:
    """Replace the logging context.

    Args:
        context: Dictionary with logging context data
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)
    _log_context.set(dict(context))


def update_log_context(key: str, value: Any) -> None:
    """Update a single key in the logging context.

    Args:
        key: Context key to update
        value: Value to set
    """
    context = get_log_context()
    context[key] = value
    structlog.contextvars.bind_contextvars(**{key: value})
    _log_context.set(context)


def clear_log_context() -> None:
    """Clear the current logging context."""
    structlog.contextvars.clear_contextvars()
    _log_context.set({})


@contextmanager
def bound_log_context(**values: Any) -> Iterator[None]:
    """Bind values for the duration of a block, restoring the previous context after."""
    previous = get_log_context()
    set_log_context({**previous, **values})
    try:
        yield
    finally:
        set_log_context(previous)
