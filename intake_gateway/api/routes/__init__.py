from __future__ import annotations

from intake_gateway.api.routes.auth import router as auth_router
from intake_gateway.api.routes.credentials import router as credentials_router
from intake_gateway.api.routes.generation import router as generation_router
from intake_gateway.api.routes.health import router as health_router
from intake_gateway.api.routes.reports import router as reports_router

__all__ = [
    "auth_router",
    "credentials_router",
    "generation_router",
    "health_router",
    "reports_router",
]
