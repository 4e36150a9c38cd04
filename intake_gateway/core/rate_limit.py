"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Strategy:
- Sliding window per client network address.
- One limiter instance per process, built at startup and reached through
  ``app.state``; each protected endpoint consumes from it under its own scope
  so budgets are not shared between endpoints.
- Throttled requests are rejected before the endpoint body runs, so they never
  reach the credential store.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request

from intake_gateway.core.bootstrap import get_services
from intake_gateway.core.config import settings
from intake_gateway.core.errors import ErrorDetails, RateLimitAppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Try again later."


def client_identity(request: Request) -> str:
    """Network address of the caller (``"unknown"`` when unavailable)."""
    return request.client.host if request.client else "unknown"


def _build_rate_limit_key(scope: str, request: Request) -> str:
    return f"{scope}:ip:{client_identity(request)}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limited(scope: str) -> Callable[[Request], Awaitable[None]]:
    """Build a dependency enforcing the shared limiter under ``scope``.

    Usage:
        @router.post("/credentials/validate", dependencies=[Depends(rate_limited("validate"))])

    Args:
        scope: Namespace separating this endpoint's budget from others.

    Returns:
        Async FastAPI dependency raising RateLimitAppError (429) when the
        caller's window is saturated.
    """

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limiter = get_services(request).rate_limiter
        key = _build_rate_limit_key(scope, request)
        key_hash = _hash_limiter_key(key)

        result = limiter.consume(key)
        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "scope": scope,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": scope,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "retry_after_s": retry_after,
            },
        )

        details: ErrorDetails | None = None
        if settings.app.rate_limit_include_headers:
            details = {
                "retry_after": retry_after,
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
            }

        raise RateLimitAppError(code="rate_limit_exceeded", message=RATE_LIMIT_MESSAGE, details=details)

    return enforce_rate_limit
