"""OpenAPI metadata and customization utilities.

Enriches the generated schema with:
- a bearer token scheme (the identifier admission control keys on)
- the ``X-Admin-Key`` scheme for the override endpoint
- tags metadata
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from rate_gate.core.auth import ADMIN_KEY_HEADER


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add security schemes and tags.

    - Admission operations document ``BearerAuth`` (optional: without a token
      the client address is used, hence the empty alternative)
    - Admin operations document ``AdminKeyAuth``
    - Health endpoints are marked ``security: []``
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "description": (
                    "Token used as the rate-limit identifier. Tokens starting with "
                    "the premium prefix get the premium tier."
                ),
            },
        )
        security_schemes.setdefault(
            "AdminKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": ADMIN_KEY_HEADER,
                "description": "Required only when APP_ADMIN_KEY_REQUIRED=true.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Admission",
                "description": "Any path and method; admitted, bypassed or rate limited.",
            },
            {
                "name": "Admin",
                "description": "Rate-limit bypass management.",
            },
            {
                "name": "Health",
                "description": "Liveness check, not rate limited.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                if path.endswith("/health"):
                    method_obj["security"] = []
                elif path.startswith("/admin/"):
                    method_obj["security"] = [{"AdminKeyAuth": []}]
                else:
                    method_obj["security"] = [{"BearerAuth": []}, {}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
