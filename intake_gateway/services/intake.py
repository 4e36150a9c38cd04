"""Intake session orchestration.

Composes the credential components with the document store into the
end-to-end flow: issue → authenticate → (chat session) → finalize.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from intake_gateway.adapters.store.base import (
    AbstractDocumentStore,
    DocumentNotFoundError,
    DocumentStoreError,
    PreconditionFailedError,
    WriteOp,
)
from intake_gateway.core.errors import (
    ForbiddenAppError,
    NotFoundAppError,
    UpstreamAppError,
    ValidationAppError,
)
from intake_gateway.services.credentials import (
    EXPIRED_MESSAGE,
    CredentialDeactivator,
    CredentialGenerator,
    CredentialVerifier,
    IssuedCredential,
    utcnow,
)

logger = logging.getLogger(__name__)

PHONE_NOT_PROVIDED = "Not provided"


@dataclass(frozen=True)
class ReportSubmission:
    """Client-supplied content of a finalized intake session."""

    client_name: str
    client_email: str
    report_content: str
    client_phone: str | None = None


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class IntakeSessionService:
    """Issues credentials, authenticates sessions and finalizes reports.

    Attributes:
        store: Persistence collaborator shared with the credential components.
        reports_collection: Collection receiving finalized case reports.
    """

    def __init__(
        self,
        store: AbstractDocumentStore,
        generator: CredentialGenerator,
        verifier: CredentialVerifier,
        deactivator: CredentialDeactivator,
        *,
        reports_collection: str = "case_reports",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.generator = generator
        self.verifier = verifier
        self.deactivator = deactivator
        self.reports_collection = reports_collection
        self._clock = clock

    def issue(self) -> IssuedCredential:
        return self.generator.issue()

    def authenticate(self, case_id: str, passcode: str) -> None:
        """Check a credential pair; raises on any failure, mutates nothing."""
        if _is_blank(case_id) or _is_blank(passcode):
            raise ValidationAppError(
                code="missing_credentials",
                message="Case ID and passcode are required.",
            )
        self.verifier.validate(case_id.strip(), passcode.strip())

    def _validate_submission(self, case_id: str, submission: ReportSubmission) -> None:
        missing = [
            name
            for name, value in (
                ("caseId", case_id),
                ("clientName", submission.client_name),
                ("clientEmail", submission.client_email),
                ("reportContent", submission.report_content),
            )
            if _is_blank(value)
        ]
        if missing:
            raise ValidationAppError(
                code="missing_report_fields",
                message="Missing required report data.",
                details={"fields": missing},
            )

    def finalize(self, case_id: str, submission: ReportSubmission) -> str:
        """Persist the session report and close the credential.

        The report write and the credential's active → used transition are
        committed together: either both happen or neither does. The
        transition only applies to a credential that is still active, so a
        second finalize for the same case is rejected instead of storing a
        duplicate report.

        Args:
            case_id: Case id of the credential that opened the session.
            submission: Client details and report text.

        Returns:
            str: Id of the stored report.

        Raises:
            ValidationAppError: Required fields are missing or blank.
            NotFoundAppError: No credential exists for ``case_id``.
            ForbiddenAppError: The credential was already used.
            UpstreamAppError: The store failed.
        """
        self._validate_submission(case_id, submission)
        case_id = case_id.strip()

        report_id = uuid.uuid4().hex
        report = {
            "caseNumber": case_id,
            "clientName": submission.client_name.strip(),
            "clientEmail": submission.client_email.strip(),
            "clientPhone": PHONE_NOT_PROVIDED if _is_blank(submission.client_phone) else submission.client_phone.strip(),
            "reportContent": submission.report_content,
            "createdAt": self._clock(),
        }

        writes = [
            WriteOp(self.reports_collection, report_id, report, create_only=True),
            self.deactivator.deactivation_write(case_id),
        ]
        try:
            self.store.commit(writes)
        except DocumentNotFoundError as exc:
            logger.warning("report.finalize_rejected", extra={"case_id": case_id, "reason": "unknown_case"})
            raise NotFoundAppError(
                code="credential_not_found",
                message=f"No access credential exists for case {case_id}.",
            ) from exc
        except PreconditionFailedError as exc:
            logger.warning("report.finalize_rejected", extra={"case_id": case_id, "reason": "credential_used"})
            raise ForbiddenAppError(code="credential_expired", message=EXPIRED_MESSAGE) from exc
        except DocumentStoreError as exc:
            logger.error(
                "report.save_failed",
                extra={"case_id": case_id, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise UpstreamAppError(code="report_save_failed", message="Failed to save report.") from exc

        logger.info("report.saved", extra={"case_id": case_id, "report_id": report_id})
        return report_id
