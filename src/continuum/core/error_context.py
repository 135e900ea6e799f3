"""Trace ids and flattened error fields for failure logs and HTTP error envelopes."""

from collections import OrderedDict
from datetime import UTC, datetime
from types import TracebackType
from typing import Any
from uuid import uuid4

from .base import ApplicationError
from .logging import get_logger

logger = get_logger(__name__)


class ErrorContext:
    """One captured failure, identified by the trace id shown to API callers."""

    def __init__(self, error: Exception, trace_id: str | None = None, **context: Any):
        self.error = error
        self.trace_id = trace_id or str(uuid4())
        self.timestamp = datetime.now(UTC)
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping for structured logs; details and context keys are prefixed."""
        fields: dict[str, Any] = {
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
        }
        if isinstance(self.error, ApplicationError):
            fields["error_code"] = self.error.code.value
            fields["error_level"] = self.error.level.value
            fields.update({f"details.{key}": value for key, value in self.error.details.model_dump().items()})
        fields.update({f"context.{key}": value for key, value in self.context.items()})
        return fields


class ErrorContextManager:
    """Captures failures and keeps the most recent ones addressable by trace id.

    Entering it (sync or async) captures the error it was built with; an
    exception raised while that error is being logged is itself logged
    rather than masking the original.
    """

    def __init__(self, error: Exception | None = None, history: int = 256, **context: Any) -> None:
        self._error = error
        self._context = context
        self._history = history
        self._recent: OrderedDict[str, ErrorContext] = OrderedDict()

    def capture_context(self, error: Exception, **context: Any) -> ErrorContext:
        captured = ErrorContext(error, **{**self._context, **context})
        self._recent[captured.trace_id] = captured
        while len(self._recent) > self._history:
            self._recent.popitem(last=False)
        return captured

    def get_context(self, trace_id: str) -> ErrorContext | None:
        return self._recent.get(trace_id)

    def _enter(self) -> ErrorContext:
        if self._error is None:
            raise ValueError("ErrorContextManager needs an error to enter")
        return self.capture_context(self._error)

    def _exit(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None) -> None:
        if exc_type is not None and exc is not None:
            logger.error(
                f"Failed while recording {type(self._error).__name__}: {exc_type.__name__}: {exc}",
                exc_info=(exc_type, exc, tb),
            )

    def __enter__(self) -> ErrorContext:
        return self._enter()

    def __exit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None) -> None:
        self._exit(exc_type, exc, tb)

    async def __aenter__(self) -> ErrorContext:
        return self._enter()

    async def __aexit__(
        self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        self._exit(exc_type, exc, tb)
