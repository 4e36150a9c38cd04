"""Staff authentication.

Two mechanisms guard the staff side of the gateway:
- ``verify_api_key``: FastAPI dependency checking the ``X-API-Key`` header
  against a comma-separated list from configuration. Used on credential
  issuing and report listing/deletion.
- ``check_internal_password``: constant-time comparison backing the internal
  login endpoint of the staff dashboard.

Intake clients never use either; they authenticate with their one-time
credential instead.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Annotated

from fastapi import Header

from intake_gateway.core.config import settings
from intake_gateway.core.errors import AuthenticationAppError, UnauthorizedAppError

logger = logging.getLogger(__name__)


def _fingerprint(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ") == {"key1", "key2", "key3"}
        True
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str) -> None:
    """Validate that the provided API key matches a configured key.

    Pure validation logic without FastAPI dependencies for easy testing.

    Raises:
        AuthenticationAppError: If the key is invalid, or authentication is
            required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error("api_key_validation_failed", extra={"reason": "api_keys_not_configured"})
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not any(secrets.compare_digest(provided_key.encode(), key.encode()) for key in valid_keys):
        logger.warning(
            "api_key_validation_failed",
            extra={"reason": "invalid_api_key", "api_key_hash": _fingerprint(provided_key)},
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency for staff API key authentication.

    Usage:
        @router.get("/reports", dependencies=[Depends(verify_api_key)])

    Raises:
        AuthenticationAppError: 403 when the header is missing or invalid.
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    if not x_api_key:
        logger.warning("auth.missing_key", extra={"api_key_present": False})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    validate_api_key(x_api_key)
    logger.info("auth.success", extra={"api_key_hash": _fingerprint(x_api_key)})


def check_internal_password(password: str) -> None:
    """Check the staff dashboard password.

    Raises:
        AuthenticationAppError: No password is configured (403).
        UnauthorizedAppError: The password does not match (401).
    """
    configured = settings.app.internal_access_password
    if configured is None or not configured.get_secret_value():
        logger.error("internal_login.failed", extra={"reason": "not_configured"})
        raise AuthenticationAppError(
            code="internal_login_not_configured",
            message="Internal login is not configured on this server.",
        )

    if not secrets.compare_digest(password.encode(), configured.get_secret_value().encode()):
        logger.warning("internal_login.failed", extra={"reason": "incorrect_password"})
        raise UnauthorizedAppError(code="incorrect_password", message="Incorrect password")

    logger.info("internal_login.success")
