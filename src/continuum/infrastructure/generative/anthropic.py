"""Generative model backed by the Anthropic messages API."""

import anthropic

from continuum.core.base import AIServiceErrorDetails, ErrorLevel
from continuum.core.circuit_breaker import CircuitBreaker, RetryWithCircuitBreaker
from continuum.core.config import Settings
from continuum.core.decorators import with_error_handling
from continuum.core.errors import (
    AuthenticationError,
    CollaboratorUnavailableError,
    RateLimitError,
    ServiceError,
    TimeoutError,
)
from continuum.core.logging import get_logger

logger = get_logger(__name__)


class AnthropicGenerativeModel:
    """Single-turn text completion with retries and a circuit breaker.

    Rate limits and timeouts are retried with exponential backoff; repeated
    failures open the circuit so that scheduled invocations fail fast while
    the API is down.
    """

    def __init__(
        self,
        settings: Settings,
        client: anthropic.AsyncAnthropic | None = None,
        max_retries: int = 3,
    ):
        if client is None and not settings.anthropic_api_key:
            raise AuthenticationError(
                "ANTHROPIC_API_KEY is not configured",
                details={"source": "anthropic_model", "operation": "init"},
            )

        self.model = settings.generative_model
        self.max_tokens = settings.generative_max_tokens
        self.client = client or anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.generative_timeout_seconds,
            # Retries are owned by RetryWithCircuitBreaker
            max_retries=0,
        )
        self.breaker: CircuitBreaker[str] = CircuitBreaker(
            name="anthropic",
            failure_threshold=5,
            recovery_timeout=60.0,
            expected_exception_types=(RateLimitError, TimeoutError, ServiceError),
        )
        self.retry = RetryWithCircuitBreaker(self.breaker, max_retries=max_retries)

    def _details(self, operation: str, status_code: int | None = None) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="anthropic_model",
            operation=operation,
            service_name="anthropic",
            model_name=self.model,
            max_tokens=self.max_tokens,
            status_code=status_code,
        )

    def _classify_error(self, exc: Exception) -> Exception:
        """Map an SDK exception onto the application error taxonomy."""
        if isinstance(exc, anthropic.RateLimitError):
            return RateLimitError(f"Anthropic rate limited: {exc}", details=self._details("messages.create", 429))
        if isinstance(exc, anthropic.AuthenticationError):
            return AuthenticationError(f"Anthropic authentication failed: {exc}", details=self._details("messages.create", 401))
        if isinstance(exc, anthropic.APITimeoutError):
            return TimeoutError(f"Anthropic request timed out: {exc}", details=self._details("messages.create"))
        if isinstance(exc, anthropic.APIConnectionError):
            return CollaboratorUnavailableError(f"Anthropic unreachable: {exc}", details=self._details("messages.create"))
        if isinstance(exc, anthropic.APIStatusError):
            return ServiceError(
                f"Anthropic API error ({exc.status_code}): {exc}",
                details=self._details("messages.create", exc.status_code),
            )
        return ServiceError(f"Anthropic call failed: {exc}", details=self._details("messages.create"))

    async def _create(self, system: str, message: str) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": message}],
            )
        except anthropic.AnthropicError as exc:
            raise self._classify_error(exc) from exc

        text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug(
            "Generative call complete",
            extra={"model": self.model, "stop_reason": response.stop_reason, "chars": len(text)},
        )
        return text

    @with_error_handling(error_level=ErrorLevel.ERROR, reraise=True)
    async def complete(self, system: str, message: str) -> str:
        """Send one user message with a system preamble and return the text reply."""
        return await self.retry.call_async(self._create, system, message)
