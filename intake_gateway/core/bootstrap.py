"""Process startup: build every long-lived collaborator once.

``build_services`` is the explicit initialization sequence. It returns a
``GatewayServices`` container that the app factory stores on ``app.state``,
or raises ``StartupError``; the server entry point treats that as fatal and
exits before binding a port.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from fastapi import Request

from intake_gateway.adapters.llm.base import AbstractLLMClient
from intake_gateway.adapters.llm.factory import create_llm_client
from intake_gateway.adapters.rate_limit.base import AbstractRateLimiter
from intake_gateway.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from intake_gateway.adapters.store.base import AbstractDocumentStore, DocumentStoreError
from intake_gateway.adapters.store.factory import create_document_store
from intake_gateway.core.config import Settings
from intake_gateway.core.errors import ValidationAppError
from intake_gateway.services.credentials import (
    CredentialDeactivator,
    CredentialGenerator,
    CredentialVerifier,
)
from intake_gateway.services.generation import GenerationService
from intake_gateway.services.intake import IntakeSessionService
from intake_gateway.services.reports import ReportService

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Raised when a required collaborator cannot be initialized."""


@dataclass
class GatewayServices:
    """Process-wide collaborators shared by all requests."""

    store: AbstractDocumentStore
    rate_limiter: AbstractRateLimiter
    intake: IntakeSessionService
    reports: ReportService
    generation: GenerationService


def _build_llm_client(cfg: Settings) -> AbstractLLMClient | None:
    try:
        return create_llm_client(cfg.llm)
    except ValidationAppError as exc:
        # Credential and report traffic does not depend on the LLM provider.
        logger.warning("startup.llm_unavailable", extra={"reason": exc.code})
        return None


def build_services(
    cfg: Settings,
    *,
    store: AbstractDocumentStore | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    llm: AbstractLLMClient | None = None,
) -> GatewayServices:
    """Initialize all collaborators in dependency order.

    Args:
        cfg: Resolved settings.
        store: Pre-built store (tests); created from ``cfg.store`` otherwise.
        rate_limiter: Pre-built limiter (tests); created from ``cfg.app`` otherwise.
        llm: Pre-built LLM client (tests); created from ``cfg.llm`` otherwise.

    Returns:
        GatewayServices ready to be attached to the app.

    Raises:
        StartupError: If the document store cannot be created or reached.
    """
    try:
        if store is None:
            store = create_document_store(cfg.store)
        store.ping()
    except DocumentStoreError as exc:
        logger.critical("startup.store_unreachable", extra={"backend": cfg.store.backend, "error_msg": str(exc)})
        raise StartupError(f"Document store unavailable: {exc}") from exc
    logger.info("startup.store_ready", extra={"backend": cfg.store.backend})

    if rate_limiter is None:
        rate_limiter = InMemorySlidingWindowRateLimiter(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
        )

    collection = cfg.store.credentials_collection
    generator = CredentialGenerator(
        store,
        collection=collection,
        case_prefix=cfg.credential.case_prefix,
        case_suffix_length=cfg.credential.case_suffix_length,
        passcode_length=cfg.credential.passcode_length,
        bcrypt_rounds=cfg.credential.bcrypt_rounds,
    )
    verifier = CredentialVerifier(store, collection=collection, bcrypt_rounds=cfg.credential.bcrypt_rounds)
    deactivator = CredentialDeactivator(store, collection=collection)

    intake = IntakeSessionService(
        store,
        generator,
        verifier,
        deactivator,
        reports_collection=cfg.store.reports_collection,
    )
    reports = ReportService(store, collection=cfg.store.reports_collection)

    generation = GenerationService(
        llm if llm is not None else _build_llm_client(cfg),
        max_prompt_chars=cfg.app.max_prompt_chars,
    )

    logger.info(
        "startup.services_ready",
        extra={
            "rate_limit_requests": cfg.app.rate_limit_requests,
            "rate_limit_window_s": cfg.app.rate_limit_window_seconds,
            "llm_configured": generation.llm is not None,
        },
    )
    return GatewayServices(
        store=store,
        rate_limiter=rate_limiter,
        intake=intake,
        reports=reports,
        generation=generation,
    )


def get_services(request: Request) -> GatewayServices:
    """FastAPI dependency returning the services attached at startup."""
    return request.app.state.services


def run() -> None:
    """Console entry point: build services, then serve the app with uvicorn.

    Exits with status 1 before binding a port when startup fails.
    """
    import uvicorn

    # Routes depend on get_services, so the app factory is imported late.
    from intake_gateway.core.app_factory import create_app
    from intake_gateway.core.config import settings
    from intake_gateway.core.logging import configure_logging

    configure_logging(settings.log)
    try:
        services = build_services(settings)
    except StartupError as exc:
        logger.critical("startup.failed", extra={"error_msg": str(exc)})
        sys.exit(1)

    uvicorn.run(create_app(services), host=settings.app.host, port=settings.app.port)
