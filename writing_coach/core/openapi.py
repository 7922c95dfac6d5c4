"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- The identity-provider principal header as an API key security scheme
- Tags metadata
- Component schemas for request bodies read raw by their routes
- Per-path security: optional on ``/v1/coach`` (anonymous callers are
  welcome), none on ``/health``, required everywhere else

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from writing_coach.core.config import settings
from writing_coach.schemas.coach import CoachRequest

SCHEME_NAME = "ClientPrincipal"

TAGS_METADATA = [
    {"name": "Coach", "description": "Submit text for coaching."},
    {"name": "Sessions", "description": "Past coaching sessions of the signed-in user."},
    {"name": "Phrases", "description": "Phrase bank of the signed-in user."},
    {"name": "Admin", "description": "Maintenance operations (admin role)."},
    {"name": "Health", "description": "Liveness checks."},
]

RAW_BODY_MODELS = (CoachRequest,)


def _register_body_schemas(components: Dict[str, Any]) -> None:
    schemas = components.setdefault("schemas", {})
    for model in RAW_BODY_MODELS:
        model_schema = model.model_json_schema(
            by_alias=True, ref_template="#/components/schemas/{model}"
        )
        for name, definition in model_schema.pop("$defs", {}).items():
            schemas.setdefault(name, definition)
        schemas.setdefault(model.__name__, model_schema)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        _register_body_schemas(components)
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            SCHEME_NAME,
            {
                "type": "apiKey",
                "in": "header",
                "name": settings.app.principal_header,
                "description": (
                    "Base64-encoded JSON principal ({userId, userRoles}) injected "
                    "by the identity provider in front of the API."
                ),
            },
        )
        schema.setdefault("security", [{SCHEME_NAME: []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                if path.endswith("/health"):
                    method_obj["security"] = []
                elif path.endswith("/coach"):
                    method_obj["security"] = [{}, {SCHEME_NAME: []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
