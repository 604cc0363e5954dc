"""
Exception hierarchy for YarnStash.

Every error raised by the service layer carries a machine readable
``error_code``, a sanitized ``user_message`` safe to return to clients, and
an ``ErrorContext`` describing the operation that failed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ErrorContext:
    """Contextual information attached to an error."""
    operation: Optional[str] = None
    user_id: Optional[int] = None
    object_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "operation": self.operation,
            "user_id": self.user_id,
            "object_id": self.object_id,
            "timestamp": self.timestamp.isoformat(),
        }
        data.update(self.extra)
        return {k: v for k, v in data.items() if v is not None}


def create_error_context(
    operation: Optional[str] = None,
    user_id: Optional[int] = None,
    object_id: Optional[str] = None,
    **extra: Any,
) -> ErrorContext:
    """Build an ErrorContext from keyword arguments."""
    return ErrorContext(
        operation=operation,
        user_id=user_id,
        object_id=object_id,
        extra=extra,
    )


class YarnStashException(Exception):
    """Base exception for all YarnStash errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        context: Optional[ErrorContext] = None,
        user_message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.user_message = user_message or "An unexpected error occurred."
        self.cause = cause

    def to_log_string(self) -> str:
        """Format the error for log output."""
        parts = [f"[{self.error_code}] {self.message}"]
        context = self.context.to_dict()
        if context:
            parts.append(f"context={context}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return " | ".join(parts)

    def to_response(self) -> Dict[str, str]:
        """Client-facing error body."""
        return {"code": self.error_code, "message": self.user_message}


class NotFoundError(YarnStashException):
    """Requested entity or stored object does not exist."""

    status_code = 404

    def __init__(self, message: str, error_code: str = "NOT_FOUND", **kwargs):
        kwargs.setdefault("user_message", "The requested resource was not found.")
        super().__init__(message, error_code=error_code, **kwargs)


class ValidationError(YarnStashException):
    """Malformed caller input, rejected before any I/O."""

    status_code = 400

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR", **kwargs):
        kwargs.setdefault("user_message", message)
        super().__init__(message, error_code=error_code, **kwargs)


class ObjectStoreError(YarnStashException):
    """A call to the external object store failed."""

    status_code = 502

    def __init__(self, message: str, error_code: str = "OBJECT_STORE_ERROR", **kwargs):
        kwargs.setdefault(
            "user_message",
            "The storage provider could not complete the request. Please try again.",
        )
        super().__init__(message, error_code=error_code, **kwargs)


class DriveNotConnectedError(YarnStashException):
    """The user has not linked a Google Drive account."""

    status_code = 400

    def __init__(self, message: str = "Google Drive not connected", **kwargs):
        kwargs.setdefault("error_code", "DRIVE_NOT_CONNECTED")
        kwargs.setdefault(
            "user_message",
            "Google Drive is not connected. Connect your account and try again.",
        )
        super().__init__(message, **kwargs)


class ConfigurationError(YarnStashException):
    """Invalid or missing configuration."""

    status_code = 500

    def __init__(self, message: str, error_code: str = "CONFIGURATION_ERROR", **kwargs):
        kwargs.setdefault("user_message", "The service is not configured correctly.")
        super().__init__(message, error_code=error_code, **kwargs)


def handle_unexpected_error(error: BaseException) -> YarnStashException:
    """Wrap an arbitrary exception so it can be logged and reported uniformly."""
    if isinstance(error, YarnStashException):
        return error
    return YarnStashException(
        message=f"{type(error).__name__}: {error}",
        error_code="UNEXPECTED_ERROR",
        user_message="An unexpected error occurred. Please try again later.",
        cause=error,
    )
