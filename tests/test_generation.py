"""Tests for the text generation proxy and the staff login endpoint."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from intake_gateway.adapters.llm.base import AbstractLLMClient
from intake_gateway.core.errors import LLMAppError, ValidationAppError
from intake_gateway.services.generation import GenerationService


@pytest.fixture
def llm_client() -> Mock:
    client = Mock(spec=AbstractLLMClient)
    client.generate_text = AsyncMock(return_value="What date did you move out?")
    return client


class TestGenerationService:
    @pytest.mark.asyncio
    async def test_returns_completion(self, llm_client: Mock):
        service = GenerationService(llm_client, max_prompt_chars=100)

        assert await service.complete("I was evicted.") == "What date did you move out?"
        llm_client.generate_text.assert_awaited_once_with("I was evicted.")

    @pytest.mark.asyncio
    async def test_blank_prompt(self, llm_client: Mock):
        service = GenerationService(llm_client)

        with pytest.raises(ValidationAppError) as exc_info:
            await service.complete("   ")

        assert exc_info.value.code == "missing_prompt"
        llm_client.generate_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prompt_too_long(self, llm_client: Mock):
        service = GenerationService(llm_client, max_prompt_chars=10)

        with pytest.raises(ValidationAppError) as exc_info:
            await service.complete("x" * 11)

        assert exc_info.value.code == "prompt_too_long"
        assert exc_info.value.details == {"max_value": 10, "actual_value": 11}

    @pytest.mark.asyncio
    async def test_not_configured(self):
        service = GenerationService(None)

        with pytest.raises(LLMAppError) as exc_info:
            await service.complete("hello")

        assert exc_info.value.code == "llm_not_configured"

    @pytest.mark.asyncio
    async def test_provider_failure(self, llm_client: Mock):
        llm_client.generate_text.side_effect = RuntimeError("OpenAI API error: timeout")
        service = GenerationService(llm_client)

        with pytest.raises(LLMAppError) as exc_info:
            await service.complete("hello")

        assert exc_info.value.code == "llm_request_failed"
        assert "timeout" not in exc_info.value.message


class TestGenerateRoute:
    def test_returns_text(self, client: TestClient):
        resp = client.post("/api/generate", json={"prompt": "My landlord kept my deposit."})

        assert resp.status_code == 200
        assert resp.json() == {"text": "Thanks. Could you describe what happened next?"}

    def test_missing_prompt_is_400(self, client: TestClient):
        resp = client.post("/api/generate", json={})

        assert resp.status_code == 400
        assert resp.json()["error"]["details"]["fields"] == ["prompt"]

    def test_provider_failure_is_500(self, client: TestClient, llm: Mock):
        llm.generate_text.side_effect = RuntimeError("OpenAI API error: upstream exploded")

        resp = client.post("/api/generate", json={"prompt": "hello"})

        assert resp.status_code == 500
        assert "exploded" not in resp.text


class TestInternalLoginRoute:
    def test_correct_password(self, client: TestClient):
        resp = client.post("/api/internal-login", json={"password": "staff-password"})

        assert resp.status_code == 200
        assert resp.json()["success"] is True

    def test_wrong_password_is_401(self, client: TestClient):
        resp = client.post("/api/internal-login", json={"password": "guess"})

        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Incorrect password"

    def test_rate_limited(self, client: TestClient):
        for _ in range(15):
            client.post("/api/internal-login", json={"password": "guess"})

        resp = client.post("/api/internal-login", json={"password": "staff-password"})

        assert resp.status_code == 429
