"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each subclass maps to
one HTTP status in ``intake_gateway.core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    fields: list[str]
    max_value: int
    actual_value: int
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    model: str
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
    """Raised when input/config validation fails."""


class UnauthorizedAppError(AppError):
    """Raised when a presented secret does not match the stored one."""


class AuthenticationAppError(AppError):
    """Raised when staff authentication/authorization fails."""


class ForbiddenAppError(AppError):
    """Raised when a credential exists but may no longer be used."""


class NotFoundAppError(AppError):
    """Raised when a credential or report does not exist."""


class RateLimitAppError(AppError):
    """Raised when a caller exhausted its admission budget."""


class UpstreamAppError(AppError):
    """Raised when the persistence collaborator fails."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""
