"""Error levels, codes and the structured details every ApplicationError carries."""

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from logfire.integrations.pydantic import PluginSettings
from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ErrorLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        return logging.getLevelNamesMapping()[self.name]


class ErrorCode(str, Enum):
    """Stable codes surfaced in the HTTP error envelope."""

    # Invocation pipeline (1xxx)
    NOT_FOUND = "1003"
    PROCESSING_FAILED = "1004"
    TIMEOUT = "1007"

    # Collaborator access (2xxx)
    AUTHENTICATION_FAILED = "2001"
    RATE_LIMITED = "2003"
    CIRCUIT_OPEN = "2005"

    # Generative model (4xxx)
    MALFORMED_RESPONSE = "4004"

    # Collaborators (5xxx)
    SERVICE_UNAVAILABLE = "5002"
    COLLABORATOR_UNAVAILABLE = "5004"

    # Identity ledger (7xxx)
    INVALID_PATH = "7001"


class ErrorDetails(BaseModel, plugin_settings=PluginSettings(logfire={"record": "all"})):
    """Where an error happened. Extra keys passed as a dict are kept."""

    model_config = ConfigDict(extra="allow")

    source: str = Field(description="Component that raised the error")
    operation: str = Field(description="Operation in progress when it failed")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class ValidationErrorDetails(ErrorDetails):
    field: str | None = Field(None, description="Field that failed validation")
    actual_value: Any = Field(None, description="Value that failed validation")
    expected_type: str | None = Field(None, description="Expected type or format")
    constraint: str | None = Field(None, description="Constraint that was violated")


class ResourceErrorDetails(ErrorDetails):
    resource_id: str | None = Field(None, description="ID of the resource")
    resource_type: str = Field(description="memory, trigger, agent...")
    action: str = Field(description="Action attempted (get, promote...)")


class ServiceErrorDetails(ErrorDetails):
    """Failure talking to SMTP, Neo4j or the generative model."""

    service_name: str = Field(description="Name of the collaborator that failed")
    endpoint: str | None = Field(None, description="Host, URI or API endpoint called")
    status_code: int | None = Field(None, description="HTTP or service status code")
    request_id: str | None = Field(None, description="Request ID for tracing")
    latency_ms: float | None = Field(None, description="Response time in milliseconds")


class AIServiceErrorDetails(ServiceErrorDetails):
    model_name: str | None = Field(None, description="Generative model name")
    max_tokens: int | None = Field(None, description="Maximum tokens requested")


def _coerce_details(details: ErrorDetails | dict[str, Any] | None) -> ErrorDetails:
    if isinstance(details, ErrorDetails):
        return details
    fields = dict(details or {})
    fields.setdefault("source", "unknown")
    fields.setdefault("operation", "unknown")
    return ErrorDetails(**fields)


class ApplicationError(Exception):
    """Base class for all continuum errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: ErrorDetails | dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.level = level
        self.details = _coerce_details(details)
        super().__init__(message)
