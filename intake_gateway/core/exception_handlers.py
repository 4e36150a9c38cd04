"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation and unexpected) and return consistent JSON
responses with proper HTTP status codes and traceability.

Design:
- AppError subclasses → status from ``STATUS_BY_ERROR`` (400 … 500)
- Request body validation → 400 instead of FastAPI's default 422
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from intake_gateway.core.errors import (
    AppError,
    AuthenticationAppError,
    ForbiddenAppError,
    LLMAppError,
    NotFoundAppError,
    RateLimitAppError,
    UnauthorizedAppError,
    UpstreamAppError,
    ValidationAppError,
)
from intake_gateway.core.logging import get_request_id

logger = logging.getLogger(__name__)

# Checked in order; the first matching base class wins.
STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (UnauthorizedAppError, 401),
    (AuthenticationAppError, 403),
    (ForbiddenAppError, 403),
    (NotFoundAppError, 404),
    (RateLimitAppError, 429),
    (UpstreamAppError, 500),
    (LLMAppError, 500),
)

_RATE_LIMIT_HEADERS = {
    "retry_after": "Retry-After",
    "limit": "X-RateLimit-Limit",
    "remaining": "X-RateLimit-Remaining",
    "reset_at": "X-RateLimit-Reset",
}


def status_for(exc: AppError) -> int:
    """Resolve the HTTP status code for a domain error (default 400)."""
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error_content: dict = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Client faults are logged at warning level, server faults at error level.
    Rate limit rejections additionally carry ``Retry-After`` and
    ``X-RateLimit-*`` headers when the error details include them.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitAppError) and exc.details:
        for key, header in _RATE_LIMIT_HEADERS.items():
            if key in exc.details:
                headers[header] = str(exc.details[key])

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Turn body/query validation failures into 400 responses.

    Only the offending field names are echoed back; submitted values never
    are, since bodies may carry passcodes or client contact details.
    """
    errors = exc.errors()
    malformed = any(error.get("type") == "json_invalid" for error in errors)
    # Malformed JSON reports a character offset in loc, not a field name.
    fields = sorted(
        {
            error["loc"][-1]
            for error in errors
            if error.get("loc")
            and error["loc"][0] == "body"
            and len(error["loc"]) > 1
            and isinstance(error["loc"][-1], str)
        }
    )

    logger.warning(
        "request_validation_failed",
        extra={
            "fields": fields,
            "malformed_json": malformed,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    message = "Missing or invalid required fields."
    if malformed:
        message = "Request body is not valid JSON."
    elif fields:
        message = f"Missing or invalid required fields: {', '.join(fields)}."

    return JSONResponse(
        status_code=400,
        content=_error_body("invalid_request", message, {"fields": fields} if fields else None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces or exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
