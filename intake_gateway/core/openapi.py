"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- API Key security scheme (``X-API-Key``) attached to staff operations only

Intake clients authenticate with their case credential in the request body,
so their operations carry no security requirement.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# (path, method) pairs guarded by verify_api_key.
STAFF_OPERATIONS = frozenset(
    {
        ("/api/credentials", "post"),
        ("/api/reports", "get"),
        ("/api/reports/{report_id}", "delete"),
    }
)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security.

    - Injects components.securitySchemes for API Key auth (header ``X-API-Key``)
    - Marks staff operations as requiring the API key and every other
      operation with ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Staff API key via the X-API-Key header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Credentials", "description": "Issue and validate one-time case credentials."},
            {"name": "Reports", "description": "Finalize intake sessions and manage case reports."},
            {"name": "Generation", "description": "Text generation proxy for the intake chat."},
            {"name": "Staff", "description": "Staff dashboard access."},
            {"name": "Health", "description": "Liveness checks."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            for method, method_obj in methods.items():
                if not isinstance(method_obj, dict):
                    continue
                if (path, method) in STAFF_OPERATIONS:
                    method_obj["security"] = [{"ApiKeyAuth": []}]
                else:
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
