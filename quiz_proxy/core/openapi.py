"""OpenAPI metadata and customization utilities.

Adds tag descriptions and documents the X-Client-ID caller token as an
optional API key scheme on the relay endpoint.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata.

    - Injects components.securitySchemes for the caller token (header
      ``X-Client-ID``); it identifies callers for quota purposes only
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ClientId",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-Client-ID",
                "description": (
                    "Opaque browser token. Combined with the client address to "
                    "count requests against the daily quota."
                ),
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Relay",
                "description": "Rate-limited passthrough to the Anthropic Messages API.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        # Optional scheme: an empty requirement keeps anonymous calls valid
        for path, methods in schema.get("paths", {}).items():
            if path.startswith("/api/"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = [{"ClientId": []}, {}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
