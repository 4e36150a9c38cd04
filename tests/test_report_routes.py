"""HTTP tests for report finalization, listing and deletion."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore


@pytest.fixture
def case_id(client: TestClient, staff_headers: dict) -> str:
    return client.post("/api/credentials", headers=staff_headers).json()["caseId"]


def _report_body(case_id: str, **overrides) -> dict:
    body = {
        "caseId": case_id,
        "clientName": "Jane Roe",
        "clientEmail": "jane@example.com",
        "clientPhone": "+1 555 0100",
        "reportContent": "Tenant dispute over an unreturned deposit.",
    }
    body.update(overrides)
    return body


class TestFinalizeReport:
    def test_stores_report_and_retires_credential(
        self, client: TestClient, case_id: str, store: InMemoryDocumentStore
    ):
        resp = client.post("/api/reports", json=_report_body(case_id))

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        report = store.get("case_reports", data["reportRef"])
        assert report["caseNumber"] == case_id
        assert report["clientPhone"] == "+1 555 0100"
        assert store.get("access_credentials", case_id)["status"] == "used"

    def test_missing_phone_defaults(self, client: TestClient, case_id: str, store: InMemoryDocumentStore):
        body = _report_body(case_id)
        del body["clientPhone"]

        resp = client.post("/api/reports", json=body)

        assert store.get("case_reports", resp.json()["reportRef"])["clientPhone"] == "Not provided"

    def test_missing_required_fields_are_400(self, client: TestClient, case_id: str):
        body = _report_body(case_id)
        del body["clientEmail"]
        del body["reportContent"]

        resp = client.post("/api/reports", json=body)

        assert resp.status_code == 400
        assert resp.json()["error"]["details"]["fields"] == ["clientEmail", "reportContent"]

    def test_unknown_case_is_404(self, client: TestClient, store: InMemoryDocumentStore):
        resp = client.post("/api/reports", json=_report_body("CI-20240101-NONE"))

        assert resp.status_code == 404
        assert store.query_ordered("case_reports", "createdAt") == []

    def test_second_finalize_is_403(self, client: TestClient, case_id: str, store: InMemoryDocumentStore):
        assert client.post("/api/reports", json=_report_body(case_id)).status_code == 200

        resp = client.post("/api/reports", json=_report_body(case_id))

        assert resp.status_code == 403
        assert len(store.query_ordered("case_reports", "createdAt")) == 1

    def test_client_data_not_in_error_response(self, client: TestClient):
        resp = client.post("/api/reports", json=_report_body("CI-20240101-NONE"))

        assert "jane@example.com" not in resp.text


class TestListReports:
    def test_newest_first_with_ids(self, client: TestClient, store: InMemoryDocumentStore, staff_headers: dict):
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        for index, key in enumerate(["r-old", "r-mid", "r-new"]):
            store.set(
                "case_reports",
                key,
                {
                    "caseNumber": f"CI-2024030{index + 1}-AAAA",
                    "clientName": "Client",
                    "clientEmail": "c@example.com",
                    "clientPhone": "Not provided",
                    "reportContent": "Text",
                    "createdAt": base + timedelta(days=index),
                },
            )

        resp = client.get("/api/reports", headers=staff_headers)

        assert resp.status_code == 200
        reports = resp.json()
        assert [r["id"] for r in reports] == ["r-new", "r-mid", "r-old"]
        assert reports[0]["caseNumber"] == "CI-20240303-AAAA"

    def test_empty_list(self, client: TestClient, staff_headers: dict):
        resp = client.get("/api/reports", headers=staff_headers)

        assert resp.status_code == 200
        assert resp.json() == []

    def test_requires_api_key(self, client: TestClient):
        assert client.get("/api/reports").status_code == 403


class TestDeleteReport:
    def test_deletes_existing(self, client: TestClient, case_id: str, store: InMemoryDocumentStore, staff_headers):
        report_id = client.post("/api/reports", json=_report_body(case_id)).json()["reportRef"]

        resp = client.delete(f"/api/reports/{report_id}", headers=staff_headers)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert store.get("case_reports", report_id) is None

    def test_unknown_is_404(self, client: TestClient, staff_headers: dict):
        resp = client.delete("/api/reports/does-not-exist", headers=staff_headers)

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "report_not_found"

    def test_blank_id_is_400(self, client: TestClient, staff_headers: dict):
        resp = client.delete("/api/reports/%20", headers=staff_headers)

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Document ID is required."

    def test_requires_api_key(self, client: TestClient):
        assert client.delete("/api/reports/anything").status_code == 403
