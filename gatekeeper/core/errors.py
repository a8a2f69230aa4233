"""Application-level exception types.

This module defines domain errors used across adapters and the HTTP layer,
enabling consistent error handling, logging, and API responses.

A rate limit rejection is NOT an error: limiters report it through a
``Decision`` value. The types below cover caller bugs and bad configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes flexible while encouraging
    consistent keys across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    value: Any
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class InvalidKeyError(ValidationAppError):
    """Raised when a limiter is asked to check an empty or malformed key."""


class InvalidConfigError(AppError):
    """Raised when limiter configuration is invalid (fatal at startup)."""
