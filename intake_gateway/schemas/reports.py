"""Pydantic schemas for case report endpoints."""

from datetime import datetime

from pydantic import Field

from intake_gateway.schemas.common import CamelModel


class FinalizeReportRequest(CamelModel):
    """Report submitted when an intake session ends."""

    case_id: str = Field(..., min_length=1, max_length=64, description="Case id of the session's credential.")
    client_name: str = Field(..., min_length=1, description="Client full name.")
    client_email: str = Field(..., min_length=1, description="Client email address.")
    client_phone: str | None = Field(default=None, description="Optional client phone number.")
    report_content: str = Field(..., min_length=1, description="Intake report text.")


class FinalizeReportResponse(CamelModel):
    success: bool = True
    report_ref: str = Field(..., description="Id of the stored report.")


class CaseReport(CamelModel):
    """Stored case report as listed to staff."""

    id: str
    case_number: str
    client_name: str
    client_email: str
    client_phone: str | None = None
    report_content: str
    created_at: datetime | None = None
