"""Pydantic schemas for access credential endpoints."""

from pydantic import Field

from intake_gateway.schemas.common import CamelModel


class IssueCredentialResponse(CamelModel):
    """A freshly issued credential. The passcode is shown only once."""

    case_id: str = Field(..., description="Case identifier, e.g. CI-20240101-AB12.")
    passcode: str = Field(..., description="One-time passcode; never retrievable again.")


class ValidateCredentialRequest(CamelModel):
    case_id: str = Field(..., min_length=1, max_length=64, description="Case identifier.")
    passcode: str = Field(..., min_length=1, max_length=128, description="Passcode issued with the case.")
