"""Case report listing and deletion for staff."""

from __future__ import annotations

import logging
from typing import Any

from intake_gateway.adapters.store.base import AbstractDocumentStore, DocumentStoreError
from intake_gateway.core.errors import NotFoundAppError, UpstreamAppError, ValidationAppError

logger = logging.getLogger(__name__)


class ReportService:
    """Thin pass-through over the reports collection."""

    def __init__(self, store: AbstractDocumentStore, *, collection: str = "case_reports") -> None:
        self.store = store
        self.collection = collection

    def list_reports(self) -> list[dict[str, Any]]:
        """Return all reports, newest first, each with its ``id``."""
        try:
            documents = self.store.query_ordered(self.collection, "createdAt", "desc")
        except DocumentStoreError as exc:
            logger.error("report.list_failed", extra={"error_type": type(exc).__name__, "error_msg": str(exc)})
            raise UpstreamAppError(code="report_list_failed", message="Failed to fetch reports.") from exc

        return [{"id": doc.key, **doc.data} for doc in documents]

    def delete_report(self, report_id: str) -> None:
        if not report_id or not report_id.strip():
            raise ValidationAppError(code="missing_report_id", message="Document ID is required.")

        try:
            existed = self.store.delete(self.collection, report_id)
        except DocumentStoreError as exc:
            logger.error(
                "report.delete_failed",
                extra={"report_id": report_id, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise UpstreamAppError(code="report_delete_failed", message="Failed to delete report.") from exc

        if not existed:
            raise NotFoundAppError(code="report_not_found", message=f"Report {report_id} does not exist.")

        logger.info("report.deleted", extra={"report_id": report_id})
