from __future__ import annotations

from fastapi import APIRouter, Depends

from intake_gateway.core.auth import verify_api_key
from intake_gateway.core.bootstrap import GatewayServices, get_services
from intake_gateway.schemas.common import StatusResponse
from intake_gateway.schemas.reports import CaseReport, FinalizeReportRequest, FinalizeReportResponse
from intake_gateway.services.intake import ReportSubmission

router = APIRouter(tags=["Reports"])


@router.post("/reports", response_model=FinalizeReportResponse)
def finalize_report(
    payload: FinalizeReportRequest,
    services: GatewayServices = Depends(get_services),
) -> FinalizeReportResponse:
    """Finalize an intake session.

    Stores the case report and marks the session's credential as used in a
    single atomic commit.

    Returns:
        FinalizeReportResponse: ``{success, reportRef}``.

    Raises:
        ValidationAppError: 400 if required fields are missing.
        NotFoundAppError: 404 if no credential exists for the case id.
        ForbiddenAppError: 403 if the credential was already used.
        UpstreamAppError: 500 if the store fails.
    """
    submission = ReportSubmission(
        client_name=payload.client_name,
        client_email=payload.client_email,
        client_phone=payload.client_phone,
        report_content=payload.report_content,
    )
    report_id = services.intake.finalize(payload.case_id, submission)
    return FinalizeReportResponse(report_ref=report_id)


@router.get(
    "/reports",
    response_model=list[CaseReport],
    dependencies=[Depends(verify_api_key)],
)
def list_reports(services: GatewayServices = Depends(get_services)) -> list[CaseReport]:
    """List all case reports, newest first."""
    return [CaseReport.model_validate(record) for record in services.reports.list_reports()]


@router.delete(
    "/reports/{report_id}",
    response_model=StatusResponse,
    dependencies=[Depends(verify_api_key)],
)
def delete_report(report_id: str, services: GatewayServices = Depends(get_services)) -> StatusResponse:
    services.reports.delete_report(report_id)
    return StatusResponse(message="Report deleted successfully.")
