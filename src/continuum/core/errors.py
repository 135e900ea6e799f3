"""Specific error types for the continuum engine."""

from .base import (
    ApplicationError,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    ResourceErrorDetails,
    ServiceErrorDetails,
    ValidationErrorDetails,
)


class ServiceError(ApplicationError):
    """Error from external service calls."""

    def __init__(
        self,
        message: str,
        details: ServiceErrorDetails | None = None,
        code: ErrorCode = ErrorCode.SERVICE_UNAVAILABLE,
    ):
        super().__init__(
            message=message,
            code=code,
            level=ErrorLevel.ERROR,
            details=details or ServiceErrorDetails(
                source="service",
                operation="external_call",
                service_name="unknown"
            )
        )


class CollaboratorUnavailableError(ServiceError):
    """An email, storage or generative collaborator could not be reached."""

    def __init__(self, message: str, details: ServiceErrorDetails | None = None):
        super().__init__(message, details=details, code=ErrorCode.COLLABORATOR_UNAVAILABLE)


class AuthenticationError(ApplicationError):
    """Authentication-related errors."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_FAILED,
            level=ErrorLevel.ERROR,
            details=details
        )


class ProcessingError(ApplicationError):
    """General processing errors."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.PROCESSING_FAILED,
            level=ErrorLevel.ERROR,
            details=details
        )


class RateLimitError(ApplicationError):
    """Rate limiting errors."""

    def __init__(self, message: str, details: ServiceErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.RATE_LIMITED,
            level=ErrorLevel.WARNING,
            details=details
        )


class TimeoutError(ApplicationError):
    """Timeout errors."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT,
            level=ErrorLevel.ERROR,
            details=details
        )


class MalformedResponseError(ApplicationError):
    """The generative model answered with something that is not the action envelope."""

    def __init__(self, message: str, details: ErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.MALFORMED_RESPONSE,
            level=ErrorLevel.WARNING,
            details=details
        )


class MemoryNotFoundError(ApplicationError):
    """A memory id did not resolve to a stored record."""

    def __init__(self, memory_id: str, operation: str = "promote"):
        self.memory_id = memory_id
        super().__init__(
            message=f"Memory not found: {memory_id}",
            code=ErrorCode.NOT_FOUND,
            level=ErrorLevel.WARNING,
            details=ResourceErrorDetails(
                source="memory_repository",
                operation=operation,
                resource_id=memory_id,
                resource_type="memory",
                action=operation,
            ),
        )


class InvalidPathError(ApplicationError):
    """An identity update addressed a field that does not exist."""

    def __init__(self, path: str, constraint: str = "path must resolve on the identity core"):
        self.path = path
        super().__init__(
            message=f"Invalid identity path: {path}",
            code=ErrorCode.INVALID_PATH,
            level=ErrorLevel.WARNING,
            details=ValidationErrorDetails(
                source="identity_update",
                operation="resolve_path",
                field="field",
                actual_value=path,
                expected_type="identity path",
                constraint=constraint,
            ),
        )
