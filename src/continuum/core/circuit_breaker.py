"""Retry and circuit breaking for collaborator calls.

The generative model is the collaborator that owns retry policy: scheduled
invocations fail fast while it is down instead of piling up behind timeouts.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from continuum.core.base import ErrorCode, ServiceErrorDetails
from continuum.core.errors import RateLimitError, ServiceError, TimeoutError
from continuum.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker(Generic[T]):
    """Counts consecutive failures of one collaborator.

    After ``failure_threshold`` failures the circuit opens and calls are
    refused with a ``CIRCUIT_OPEN`` ServiceError. Once ``recovery_timeout``
    seconds have passed a trial call is let through (half-open);
    ``success_threshold`` successes close the circuit again, one failure
    reopens it. Only ``expected_exception_types`` count as failures.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        expected_exception_types: tuple[type[Exception], ...] = (Exception,),
        success_threshold: int = 2,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception_types = expected_exception_types
        self.success_threshold = success_threshold

        self._state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.opened_at: float | None = None
        self.last_exception: Exception | None = None

    @property
    def state(self) -> CircuitState:
        if (
            self._state == CircuitState.OPEN
            and self.opened_at is not None
            and time.monotonic() - self.opened_at >= self.recovery_timeout
        ):
            logger.info(f"Circuit '{self.name}' half-open, allowing a trial call")
            self._state = CircuitState.HALF_OPEN
            self.success_count = 0
        return self._state

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self.opened_at = time.monotonic()
        self.success_count = 0

    def record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self.success_count += 1
            if self.success_count < self.success_threshold:
                return
            logger.info(f"Circuit '{self.name}' closed after recovery")
            self._state = CircuitState.CLOSED
            self.last_exception = None
        self.failure_count = 0

    def record_failure(self, exception: Exception) -> None:
        self.last_exception = exception
        if self._state == CircuitState.HALF_OPEN:
            logger.warning(f"Circuit '{self.name}' trial call failed, reopening")
            self.failure_count = 1
            self._open()
            return

        self.failure_count += 1
        if self._state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            logger.error(
                f"Circuit '{self.name}' opened after {self.failure_count} failures",
                last_exception=str(exception),
            )
            self._open()

    def _refusal(self) -> ServiceError:
        reason = f" (last error: {self.last_exception})" if self.last_exception else ""
        return ServiceError(
            message=f"Circuit breaker '{self.name}' is open{reason}",
            code=ErrorCode.CIRCUIT_OPEN,
            details=ServiceErrorDetails(
                source="circuit_breaker",
                operation="call_async",
                service_name=self.name,
                status_code=503,
            ),
        )

    async def call_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``func`` unless the circuit is open.

        Raises:
            ServiceError: If the circuit is open
        """
        if self.state == CircuitState.OPEN:
            raise self._refusal()

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception_types as e:
            self.record_failure(e)
            raise
        self.record_success()
        return result


class RetryWithCircuitBreaker:
    """Exponential backoff for transient errors, in front of a circuit breaker.

    Anything not in ``retryable_exceptions`` (including the breaker's own
    refusal) propagates on the first attempt.
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        backoff_factor: float = 2.0,
        max_delay: float = 60.0,
        retryable_exceptions: tuple[type[Exception], ...] = (RateLimitError, TimeoutError),
    ):
        self.circuit_breaker = circuit_breaker
        self.max_retries = max(1, max_retries)
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.retryable_exceptions = retryable_exceptions

    def _delay(self, attempt: int) -> float:
        return min(self.initial_delay * self.backoff_factor ** (attempt - 1), self.max_delay)

    async def call_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        for attempt in range(1, self.max_retries):
            try:
                return await self.circuit_breaker.call_async(func, *args, **kwargs)
            except self.retryable_exceptions as e:
                delay = self._delay(attempt)
                logger.warning(
                    f"Retrying '{self.circuit_breaker.name}' after transient failure",
                    attempt=attempt,
                    delay=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)
        return await self.circuit_breaker.call_async(func, *args, **kwargs)
