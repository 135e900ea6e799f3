"""Tests for the error taxonomy, error context, decorators and circuit breaker."""

import logging

import pytest

from continuum.core.base import ErrorCode, ErrorLevel
from continuum.core.circuit_breaker import CircuitBreaker, CircuitState, RetryWithCircuitBreaker
from continuum.core.decorators import with_error_handling
from continuum.core.error_context import ErrorContextManager
from continuum.core.errors import MemoryNotFoundError, ProcessingError, RateLimitError, ServiceError


def test_error_level_maps_to_logging():
    assert ErrorLevel.WARNING.to_logging_level() == logging.WARNING
    assert ErrorLevel.CRITICAL.to_logging_level() == logging.CRITICAL


def test_dict_details_keep_extra_keys():
    error = ProcessingError("bad", details={"source": "agent_orchestrator", "operation": "dispatch", "agent_id": "x"})

    dumped = error.details.model_dump()
    assert dumped["source"] == "agent_orchestrator"
    assert dumped["agent_id"] == "x"
    assert error.code == ErrorCode.PROCESSING_FAILED


def test_error_context_flattens_details():
    manager = ErrorContextManager(context_source="test")
    captured = manager.capture_context(MemoryNotFoundError("mem_1"))

    fields = captured.to_dict()
    assert fields["error_type"] == "MemoryNotFoundError"
    assert fields["error_code"] == ErrorCode.NOT_FOUND.value
    assert fields["details.resource_id"] == "mem_1"
    assert fields["context.context_source"] == "test"
    assert manager.get_context(captured.trace_id) is captured


def test_error_context_history_is_bounded():
    manager = ErrorContextManager(history=2)
    first = manager.capture_context(ValueError("1"))
    manager.capture_context(ValueError("2"))
    manager.capture_context(ValueError("3"))

    assert manager.get_context(first.trace_id) is None


def test_error_context_manager_needs_an_error():
    with pytest.raises(ValueError):
        with ErrorContextManager():
            pass


async def test_with_error_handling_swallows_when_asked():
    @with_error_handling(reraise=False)
    async def job():
        raise ProcessingError("boom")

    assert await job() is None


def test_with_error_handling_reraises_sync():
    @with_error_handling()
    def compute(value: int) -> int:
        raise ValueError(value)

    with pytest.raises(ValueError):
        compute(1)


class Flaky:
    def __init__(self, failures: list[Exception]):
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


async def test_circuit_opens_after_threshold():
    breaker = CircuitBreaker(name="test", failure_threshold=2, expected_exception_types=(ServiceError,))
    flaky = Flaky([ServiceError("down"), ServiceError("down")])

    for _ in range(2):
        with pytest.raises(ServiceError):
            await breaker.call_async(flaky)

    assert breaker.state == CircuitState.OPEN
    with pytest.raises(ServiceError) as refused:
        await breaker.call_async(flaky)
    assert refused.value.code == ErrorCode.CIRCUIT_OPEN
    assert flaky.calls == 2


async def test_circuit_recovers_through_half_open():
    breaker = CircuitBreaker(
        name="test", failure_threshold=1, recovery_timeout=0.0, success_threshold=2, expected_exception_types=(ServiceError,)
    )
    with pytest.raises(ServiceError):
        await breaker.call_async(Flaky([ServiceError("down")]))

    assert breaker.state == CircuitState.HALF_OPEN
    await breaker.call_async(Flaky([]))
    assert breaker.state == CircuitState.HALF_OPEN
    await breaker.call_async(Flaky([]))
    assert breaker.state == CircuitState.CLOSED


async def test_unexpected_exceptions_do_not_count():
    breaker = CircuitBreaker(name="test", failure_threshold=1, expected_exception_types=(ServiceError,))

    with pytest.raises(KeyError):
        await breaker.call_async(Flaky([KeyError("x")]))

    assert breaker.state == CircuitState.CLOSED


async def test_retry_gives_up_after_max_retries():
    retry = RetryWithCircuitBreaker(CircuitBreaker(name="test"), max_retries=3, initial_delay=0)
    flaky = Flaky([RateLimitError("slow down")] * 3)

    with pytest.raises(RateLimitError):
        await retry.call_async(flaky)

    assert flaky.calls == 3


async def test_retry_does_not_retry_permanent_errors():
    retry = RetryWithCircuitBreaker(CircuitBreaker(name="test"), max_retries=3, initial_delay=0)
    flaky = Flaky([ProcessingError("bad request")])

    with pytest.raises(ProcessingError):
        await retry.call_async(flaky)

    assert flaky.calls == 1
