"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build an app around their own in-memory services.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intake_gateway.api.routes import (
    auth_router,
    credentials_router,
    generation_router,
    health_router,
    reports_router,
)
from intake_gateway.core.bootstrap import GatewayServices, build_services
from intake_gateway.core.config import settings
from intake_gateway.core.exception_handlers import setup_exception_handlers
from intake_gateway.core.logging import configure_logging
from intake_gateway.core.middleware import request_id_middleware
from intake_gateway.core.openapi import apply_openapi_customizations


def _parse_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


def create_app(services: GatewayServices | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Pre-built collaborators. Built from settings when omitted,
            which raises StartupError if the document store is unreachable.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    if services is None:
        services = build_services(settings)

    app = FastAPI(
        title="Legal Intake Gateway",
        description=(
            "Backend for a legal client-intake assistant. Staff issue one-time "
            "case credentials; clients validate them to open an intake chat "
            "session, and finalizing the session stores the case report and "
            "retires the credential. Staff endpoints require X-API-Key; "
            "credential validation and internal login are rate limited."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.services = services

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_origins(settings.app.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(credentials_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")
    app.include_router(generation_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
