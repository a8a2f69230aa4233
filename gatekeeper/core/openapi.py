"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- A documented 429 response (and its rate limit headers) on every operation
  that sits behind the rate limiter

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Paths that are never rate limited
UNLIMITED_PATH_PREFIXES = ("/health", "/internal/", "/docs", "/redoc", "/openapi.json")

_RATE_LIMIT_HEADERS: Dict[str, Any] = {
    "X-RateLimit-Limit": {
        "description": "Requests allowed per window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests left in the current window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "UNIX time (seconds) at which the current window resets.",
        "schema": {"type": "integer"},
    },
}


def _is_rate_limited(path: str) -> bool:
    return not path.startswith(UNLIMITED_PATH_PREFIXES)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 documentation."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {"name": "Root", "description": "Service greeting."},
            {"name": "Users", "description": "Sample user endpoints (rate limited)."},
            {"name": "Health", "description": "Liveness and limiter statistics (not rate limited)."},
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not _is_rate_limited(path):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                responses = method_obj.setdefault("responses", {})
                responses.setdefault(
                    "429",
                    {
                        "description": "Too Many Requests",
                        "headers": {
                            **_RATE_LIMIT_HEADERS,
                            "Retry-After": {
                                "description": "Seconds to wait before retrying.",
                                "schema": {"type": "integer"},
                            },
                        },
                    },
                )

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
