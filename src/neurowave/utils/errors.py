"""Structured error codes and error handling for neurowave.

Error codes follow the pattern: E{category}{number}
- E1xx: Input validation errors
- E4xx: Actor runtime errors
- E7xx: System/Infrastructure errors
- E8xx: Configuration errors
- E9xx: API/Request errors

The evaluation core itself never raises on sanitizable input or unknown
actor ids; these exceptions are used for load-time configuration
validation and by the HTTP surface.

Example:
    >>> from neurowave.utils.errors import ErrorCode, NeuroWaveError
    >>> raise NeuroWaveError(ErrorCode.E802_INVALID_TOLERANCE, "tolerance[2] must be > 0")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Standardized error codes for neurowave."""

    # E1xx: Input validation errors
    E100_VALIDATION_ERROR = "E100"

    # E4xx: Actor runtime errors
    E401_ACTOR_NOT_FOUND = "E401"
    E403_TICK_FAILED = "E403"

    # E7xx: System/Infrastructure errors
    E700_SYSTEM_ERROR = "E700"
    E701_SCHEDULER_ERROR = "E701"
    E702_SHUTDOWN_IN_PROGRESS = "E702"

    # E8xx: Configuration errors
    E800_CONFIG_ERROR = "E800"
    E801_INVALID_CONFIG_FILE = "E801"
    E802_INVALID_TOLERANCE = "E802"
    E803_CONFIG_VALIDATION_FAILED = "E803"
    E804_INVALID_THRESHOLDS = "E804"

    # E9xx: API/Request errors
    E905_NOT_FOUND = "E905"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E100_VALIDATION_ERROR: "Input validation failed",
    ErrorCode.E401_ACTOR_NOT_FOUND: "Actor not found",
    ErrorCode.E403_TICK_FAILED: "Evaluation tick failed",
    ErrorCode.E700_SYSTEM_ERROR: "System error",
    ErrorCode.E701_SCHEDULER_ERROR: "Evaluation scheduler error",
    ErrorCode.E702_SHUTDOWN_IN_PROGRESS: "System shutdown in progress",
    ErrorCode.E800_CONFIG_ERROR: "Configuration error",
    ErrorCode.E801_INVALID_CONFIG_FILE: "Invalid configuration file format",
    ErrorCode.E802_INVALID_TOLERANCE: "Band tolerances must be strictly positive",
    ErrorCode.E803_CONFIG_VALIDATION_FAILED: "Configuration validation failed",
    ErrorCode.E804_INVALID_THRESHOLDS: "Overload threshold must not exceed success threshold",
    ErrorCode.E905_NOT_FOUND: "Resource not found",
}


@dataclass
class ErrorDetails:
    """Structured error details for logging and API responses.

    Attributes:
        code: Error code enum value
        message: Human-readable error message
        details: Additional error details
        context: Context information (actor_id, request_id, etc.)
        recoverable: Whether the error is recoverable
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    recoverable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.context:
            result["context"] = self.context
        result["recoverable"] = self.recoverable
        return result

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary suitable for structured logging."""
        log_dict: dict[str, Any] = {
            "error_code": self.code.value,
            "error_message": self.message,
            "recoverable": self.recoverable,
        }
        for key, value in self.details.items():
            log_dict[f"detail_{key}"] = value
        for key, value in self.context.items():
            log_dict[f"ctx_{key}"] = value
        return log_dict


class NeuroWaveError(Exception):
    """Base exception class for neurowave errors with structured error codes.

    Example:
        >>> try:
        ...     raise NeuroWaveError(
        ...         ErrorCode.E401_ACTOR_NOT_FOUND,
        ...         details={"actor_id": "grandma"},
        ...     )
        ... except NeuroWaveError as e:
        ...     print(e.error_details.to_dict())
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        recoverable: bool = False,
    ) -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Unknown error")
        self.error_details = ErrorDetails(
            code=code,
            message=self.message,
            details=details or {},
            context=context or {},
            recoverable=recoverable,
        )
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def log(self, level: int = logging.ERROR) -> None:
        """Log the error with structured details."""
        logger.log(level, str(self), extra=self.error_details.to_log_dict())


# ---------------------------------------------------------------------------
# Specific exception classes
# ---------------------------------------------------------------------------


class ValidationError(NeuroWaveError):
    """Input validation error."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(ErrorCode.E100_VALIDATION_ERROR, message, details, **kwargs)


class ConfigurationError(NeuroWaveError):
    """Configuration error, raised at load time."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E800_CONFIG_ERROR,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, **kwargs)


class ActorNotFoundError(NeuroWaveError):
    """Unknown actor id."""

    def __init__(self, actor_id: str, message: str | None = None, **kwargs: Any) -> None:
        details: dict[str, Any] = kwargs.pop("details", {})
        details["actor_id"] = actor_id
        self.actor_id = actor_id
        super().__init__(
            ErrorCode.E401_ACTOR_NOT_FOUND,
            message or f"Actor not found: {actor_id}",
            details=details,
            recoverable=True,
            **kwargs,
        )


class SchedulerError(NeuroWaveError):
    """Evaluation scheduler error."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.E701_SCHEDULER_ERROR,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(code, message, **kwargs)


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------


def create_error_response(
    error: NeuroWaveError | Exception,
    include_details: bool = True,
) -> dict[str, Any]:
    """Create a structured error response for API returns."""
    if isinstance(error, NeuroWaveError):
        response = error.error_details.to_dict()
        if not include_details:
            response.pop("details", None)
            response.pop("context", None)
        return {"error": response}
    return {
        "error": {
            "error_code": ErrorCode.E700_SYSTEM_ERROR.value,
            "message": str(error) if include_details else "An unexpected error occurred",
            "recoverable": False,
        }
    }


def get_http_status_for_error(error: NeuroWaveError) -> int:
    """Get the HTTP status code for a neurowave error."""
    code = error.code
    if code in (ErrorCode.E401_ACTOR_NOT_FOUND, ErrorCode.E905_NOT_FOUND):
        return 404
    prefix = code.value[:2]
    if prefix == "E1":
        return 400
    if prefix == "E8":
        return 422
    if code is ErrorCode.E702_SHUTDOWN_IN_PROGRESS:
        return 503
    return 500
