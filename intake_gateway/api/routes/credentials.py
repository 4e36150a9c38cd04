from __future__ import annotations

from fastapi import APIRouter, Depends

from intake_gateway.core.auth import verify_api_key
from intake_gateway.core.bootstrap import GatewayServices, get_services
from intake_gateway.core.rate_limit import rate_limited
from intake_gateway.schemas.common import StatusResponse
from intake_gateway.schemas.credentials import IssueCredentialResponse, ValidateCredentialRequest

router = APIRouter(tags=["Credentials"])


@router.post(
    "/credentials",
    response_model=IssueCredentialResponse,
    dependencies=[Depends(verify_api_key)],
)
def issue_credential(services: GatewayServices = Depends(get_services)) -> IssueCredentialResponse:
    """Issue a new one-time access credential.

    The plaintext passcode appears in this response only; the store keeps a
    bcrypt hash.

    Returns:
        IssueCredentialResponse: ``{caseId, passcode}``.

    Raises:
        UpstreamAppError: 500 if the credential cannot be persisted.
    """
    issued = services.intake.issue()
    return IssueCredentialResponse(case_id=issued.case_id, passcode=issued.passcode)


@router.post(
    "/credentials/validate",
    response_model=StatusResponse,
    dependencies=[Depends(rate_limited("validate"))],
)
def validate_credential(
    payload: ValidateCredentialRequest,
    services: GatewayServices = Depends(get_services),
) -> StatusResponse:
    """Check a case id and passcode before an intake session starts.

    Validation never consumes the credential; only finalizing the session does.

    Raises:
        ValidationAppError: 400 if either field is blank.
        NotFoundAppError: 404 for an unknown case id.
        ForbiddenAppError: 403 if the credential was already used.
        UnauthorizedAppError: 401 on a passcode mismatch.
        RateLimitAppError: 429 when the caller's window is saturated.
    """
    services.intake.authenticate(payload.case_id, payload.passcode)
    return StatusResponse(message="Credential is valid.")
