"""Error handlers for different types of errors"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from continuum.core.logging import get_logger

from .base import ApplicationError, ErrorCode, ErrorLevel
from .error_context import ErrorContext, ErrorContextManager
from .errors import InvalidPathError, MemoryNotFoundError

logger = get_logger(__name__)

_STATUS_BY_ERROR: dict[type[ApplicationError], int] = {
    MemoryNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidPathError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class ErrorHandler:
    """Base class for error handlers"""

    def __init__(self, context_manager: ErrorContextManager):
        self.context_manager = context_manager

    def _format_response(
        self,
        error_context: ErrorContext,
        level: ErrorLevel,
        additional_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Format error response"""
        response: dict[str, Any] = {
            "error": str(error_context.error),
            "error_code": (additional_context or {}).get("error_code", ErrorCode.PROCESSING_FAILED.value),
            "level": level.value,
            "trace_id": error_context.trace_id,
            "timestamp": error_context.timestamp.isoformat(),
        }

        if isinstance(error_context.error, ApplicationError):
            response["error_code"] = error_context.error.code.value
            response["details"] = error_context.error.details.model_dump()

        return response


class GlobalErrorHandler(ErrorHandler):
    """Global error handler for the FastAPI application"""

    def status_for(self, error: ApplicationError) -> int:
        for error_type, code in _STATUS_BY_ERROR.items():
            if isinstance(error, error_type):
                return code
        return status.HTTP_500_INTERNAL_SERVER_ERROR

    async def handle_application_error(self, _request: Request, error: Exception) -> JSONResponse:
        """Render an ApplicationError into the standard error envelope."""
        assert isinstance(error, ApplicationError)
        error_context = self.context_manager.capture_context(error)
        logger.log(
            error.level.to_logging_level(),
            f"Request failed: {error.message}",
            trace_id=error_context.trace_id,
        )
        return JSONResponse(
            status_code=self.status_for(error),
            content=self._format_response(error_context, error.level),
        )
