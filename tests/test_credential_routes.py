"""HTTP tests for credential issuing and validation."""

import re
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore
from intake_gateway.core.config import settings

VALIDATE = "/api/credentials/validate"


@pytest.fixture
def issued(client: TestClient, staff_headers: dict) -> dict:
    resp = client.post("/api/credentials", headers=staff_headers)
    assert resp.status_code == 200
    return resp.json()


class TestIssueCredential:
    def test_returns_camel_case_pair(self, issued: dict):
        assert set(issued) == {"caseId", "passcode"}
        assert re.fullmatch(r"CI-\d{8}-[A-Z0-9]{4}", issued["caseId"])
        assert re.fullmatch(r"[A-Z0-9]{8}", issued["passcode"])

    def test_stores_hash_not_plaintext(self, issued: dict, store: InMemoryDocumentStore):
        record = store.get("access_credentials", issued["caseId"])

        assert record["status"] == "active"
        assert issued["passcode"] not in str(record)

    def test_requires_api_key(self, client: TestClient):
        resp = client.post("/api/credentials")

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "missing_api_key"

    def test_rejects_wrong_api_key(self, client: TestClient):
        resp = client.post("/api/credentials", headers={"X-API-Key": "nope"})

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "invalid_api_key"

    def test_each_issue_is_distinct(self, client: TestClient, staff_headers: dict):
        first = client.post("/api/credentials", headers=staff_headers).json()
        second = client.post("/api/credentials", headers=staff_headers).json()

        assert first != second


class TestValidateCredential:
    def test_valid_pair(self, client: TestClient, issued: dict):
        resp = client.post(VALIDATE, json=issued)

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Credential is valid."}

    def test_wrong_passcode_is_401(self, client: TestClient, issued: dict):
        resp = client.post(VALIDATE, json={"caseId": issued["caseId"], "passcode": "WRONG0000"})

        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid login details."

    def test_unknown_case_is_404(self, client: TestClient):
        resp = client.post(VALIDATE, json={"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"})

        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Invalid login details."

    def test_used_credential_is_403(self, client: TestClient, issued: dict):
        finalize = client.post(
            "/api/reports",
            json={
                "caseId": issued["caseId"],
                "clientName": "Jane Roe",
                "clientEmail": "jane@example.com",
                "reportContent": "Summary.",
            },
        )
        assert finalize.status_code == 200

        resp = client.post(VALIDATE, json=issued)

        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "This intake session has expired."

    def test_missing_fields_are_400(self, client: TestClient):
        resp = client.post(VALIDATE, json={"caseId": "CI-20240101-AB12"})

        assert resp.status_code == 400
        assert resp.json()["error"]["details"]["fields"] == ["passcode"]

    def test_blank_fields_are_400(self, client: TestClient):
        resp = client.post(VALIDATE, json={"caseId": "   ", "passcode": "   "})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "missing_credentials"

    def test_passcode_never_echoed(self, client: TestClient, issued: dict):
        resp = client.post(VALIDATE, json={"caseId": issued["caseId"], "passcode": "WRONG0000"})

        assert "WRONG0000" not in resp.text
        assert issued["passcode"] not in resp.text


class TestValidateRateLimit:
    def test_sixteenth_call_rejected_before_lookup(
        self, client: TestClient, store: InMemoryDocumentStore, monkeypatch
    ):
        lookups = Mock(wraps=store.get)
        monkeypatch.setattr(store, "get", lookups)
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}

        statuses = [client.post(VALIDATE, json=body).status_code for _ in range(15)]
        assert statuses == [404] * 15
        assert lookups.call_count == 15

        resp = client.post(VALIDATE, json=body)

        assert resp.status_code == 429
        assert lookups.call_count == 15
        assert resp.json()["error"]["code"] == "rate_limit_exceeded"
        assert resp.headers["Retry-After"] == "60"
        assert resp.headers["X-RateLimit-Limit"] == "15"
        assert resp.headers["X-RateLimit-Remaining"] == "0"

    def test_window_expiry_readmits(self, client: TestClient, limiter_clock: Mock):
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}
        for _ in range(15):
            client.post(VALIDATE, json=body)
        assert client.post(VALIDATE, json=body).status_code == 429

        limiter_clock.return_value = 1060.0

        assert client.post(VALIDATE, json=body).status_code == 404

    def test_disabled_limiter_admits_every_call(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings.app, "rate_limit_enabled", False)
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}

        statuses = [client.post(VALIDATE, json=body).status_code for _ in range(20)]

        assert statuses == [404] * 20

    def test_headers_can_be_omitted(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}
        for _ in range(15):
            client.post(VALIDATE, json=body)

        resp = client.post(VALIDATE, json=body)

        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limit_exceeded"
        assert "details" not in resp.json()["error"]
        for header in ("Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"):
            assert header not in resp.headers

    def test_malformed_body_is_rejected_without_spending_budget(self, client: TestClient):
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}
        for _ in range(14):
            client.post(VALIDATE, json=body)

        malformed = client.post(VALIDATE, content=b"{not json", headers={"Content-Type": "application/json"})
        assert malformed.status_code == 400

        assert client.post(VALIDATE, json=body).status_code == 404
        assert client.post(VALIDATE, json=body).status_code == 429

    def test_budget_not_shared_with_internal_login(self, client: TestClient):
        body = {"caseId": "CI-20240101-ZZZZ", "passcode": "A1B2C3D4"}
        for _ in range(16):
            client.post(VALIDATE, json=body)

        resp = client.post("/api/internal-login", json={"password": "staff-password"})

        assert resp.status_code == 200
