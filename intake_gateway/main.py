"""ASGI entry point.

``uvicorn intake_gateway.main:app`` serves the app built from environment
settings; ``intake-gateway`` (``intake_gateway.core.bootstrap:run``) does the
same but exits with status 1 instead of raising when startup fails.
"""

from intake_gateway.core.app_factory import create_app

app = create_app()
