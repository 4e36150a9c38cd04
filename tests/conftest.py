"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is read, and pins the environment the
settings object is built from.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents the .env file from being loaded during tests
os.environ["TESTING"] = "true"

os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_INTERNAL_ACCESS_PASSWORD", "staff-password")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("CREDENTIAL_BCRYPT_ROUNDS", "4")

from datetime import datetime, timezone  # noqa: E402
from unittest.mock import AsyncMock, Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from intake_gateway.adapters.llm.base import AbstractLLMClient  # noqa: E402
from intake_gateway.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter  # noqa: E402
from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore  # noqa: E402
from intake_gateway.core.app_factory import create_app  # noqa: E402
from intake_gateway.core.bootstrap import GatewayServices, build_services  # noqa: E402
from intake_gateway.core.config import settings  # noqa: E402

STAFF_HEADERS = {"X-API-Key": "test-api-key-123"}


class FakeClock:
    """Controllable UTC clock for credential and report timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def limiter_clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def rate_limiter(limiter_clock: Mock) -> InMemorySlidingWindowRateLimiter:
    return InMemorySlidingWindowRateLimiter(limit=15, window_seconds=60, clock=limiter_clock)


@pytest.fixture
def llm() -> AbstractLLMClient:
    client = Mock(spec=AbstractLLMClient)
    client.generate_text = AsyncMock(return_value="Thanks. Could you describe what happened next?")
    return client


@pytest.fixture
def services(
    store: InMemoryDocumentStore,
    rate_limiter: InMemorySlidingWindowRateLimiter,
    llm: AbstractLLMClient,
) -> GatewayServices:
    return build_services(settings, store=store, rate_limiter=rate_limiter, llm=llm)


@pytest.fixture
def client(services: GatewayServices) -> TestClient:
    return TestClient(create_app(services))


@pytest.fixture
def staff_headers() -> dict[str, str]:
    return dict(STAFF_HEADERS)
