from __future__ import annotations

from fastapi import APIRouter, Depends

from intake_gateway.core.auth import check_internal_password
from intake_gateway.core.rate_limit import rate_limited
from intake_gateway.schemas.auth import InternalLoginRequest
from intake_gateway.schemas.common import StatusResponse

router = APIRouter(tags=["Staff"])


@router.post(
    "/internal-login",
    response_model=StatusResponse,
    dependencies=[Depends(rate_limited("internal-login"))],
)
def internal_login(payload: InternalLoginRequest) -> StatusResponse:
    """Staff dashboard login.

    Raises:
        UnauthorizedAppError: 401 on a wrong password.
        AuthenticationAppError: 403 when no password is configured.
        RateLimitAppError: 429 when the caller's window is saturated.
    """
    check_internal_password(payload.password)
    return StatusResponse(message="Login successful.")
