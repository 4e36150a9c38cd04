"""Tests for the startup sequence and store backend selection."""

from unittest.mock import MagicMock, Mock, patch

import pytest

from intake_gateway.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from intake_gateway.adapters.store.base import AbstractDocumentStore, StoreUnavailableError
from intake_gateway.adapters.store.factory import create_document_store
from intake_gateway.adapters.store.in_memory import InMemoryDocumentStore
from intake_gateway.core import bootstrap
from intake_gateway.core.bootstrap import StartupError, build_services
from intake_gateway.core.config import LLMSettings, Settings, StoreSettings


class TestBuildServices:
    def test_builds_from_settings(self) -> None:
        services = build_services(Settings())

        assert isinstance(services.store, InMemoryDocumentStore)
        assert isinstance(services.rate_limiter, InMemorySlidingWindowRateLimiter)
        assert services.rate_limiter.limit == 15
        assert services.rate_limiter.window_seconds == 60
        assert services.generation.llm is not None

    def test_missing_llm_key_is_not_fatal(self) -> None:
        cfg = Settings(llm=LLMSettings(api_key=None))

        services = build_services(cfg)

        assert services.generation.llm is None

    def test_unreachable_store_raises_startup_error(self) -> None:
        store = Mock(spec=AbstractDocumentStore)
        store.ping.side_effect = StoreUnavailableError("permission denied")

        with pytest.raises(StartupError):
            build_services(Settings(), store=store)

    def test_firestore_without_credentials_raises_startup_error(self, tmp_path) -> None:
        cfg = Settings(
            store=StoreSettings(
                backend="firestore",
                credentials_path=str(tmp_path / "missing.json"),
                fallback_credentials_path=str(tmp_path / "also-missing.json"),
            )
        )

        with pytest.raises(StartupError):
            build_services(cfg)


class TestRun:
    def test_startup_failure_exits_before_serving(self) -> None:
        with patch.object(bootstrap, "build_services", side_effect=StartupError("store down")), patch(
            "uvicorn.run"
        ) as uvicorn_run:
            with pytest.raises(SystemExit) as exc_info:
                bootstrap.run()

        assert exc_info.value.code == 1
        uvicorn_run.assert_not_called()

    def test_serves_app_on_configured_port(self, services) -> None:
        with patch.object(bootstrap, "build_services", return_value=services), patch("uvicorn.run") as uvicorn_run:
            bootstrap.run()

        uvicorn_run.assert_called_once()
        assert uvicorn_run.call_args.kwargs["port"] == 3001
        app = uvicorn_run.call_args.args[0]
        assert app.state.services is services


def test_store_factory_selects_memory() -> None:
    assert isinstance(create_document_store(StoreSettings(backend="memory")), InMemoryDocumentStore)


def test_store_factory_uses_first_existing_key_file(tmp_path) -> None:
    fallback = tmp_path / "serviceAccountKey.json"
    fallback.write_text("{}")
    cfg = StoreSettings(
        backend="firestore",
        credentials_path=str(tmp_path / "missing.json"),
        fallback_credentials_path=str(fallback),
    )
    fake_store = MagicMock()

    with patch(
        "intake_gateway.adapters.store.firestore.FirestoreDocumentStore.from_service_account",
        return_value=fake_store,
    ) as from_service_account:
        assert create_document_store(cfg) is fake_store

    from_service_account.assert_called_once_with(str(fallback))
