"""Key extraction strategies for rate limiting.

A key extractor maps an incoming request to the identity its quota is
tracked under. Keys are namespaced by strategy so an API key can never
collide with an IP address.
"""

from __future__ import annotations

from fastapi import Request

from gatekeeper.adapters.rate_limit.base import KeyExtractor
from gatekeeper.core.errors import InvalidConfigError

API_KEY_HEADER = "X-API-Key"


def client_ip(request: Request) -> str:
    """Return the client host, or "unknown" when the transport hides it."""

    return request.client.host if request.client else "unknown"


def key_by_ip(request: Request) -> str:
    return f"ip:{client_ip(request)}"


def key_by_api_key(request: Request) -> str:
    """Group by X-API-Key; fall back to client IP when the header is absent."""

    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        return f"api_key:{api_key}"
    return key_by_ip(request)


def key_by_route(request: Request) -> str:
    """Give each client a separate quota per method and path."""

    return f"route:{request.method}:{request.url.path}:{client_ip(request)}"


KEY_EXTRACTORS: dict[str, KeyExtractor] = {
    "ip": key_by_ip,
    "api_key": key_by_api_key,
    "route": key_by_route,
}


def get_key_extractor(strategy: str) -> KeyExtractor:
    """Resolve a configured strategy name to its extractor.

    Raises:
        InvalidConfigError: If the strategy is unknown.
    """

    try:
        return KEY_EXTRACTORS[strategy]
    except KeyError:
        raise InvalidConfigError(
            code="unsupported_key_strategy",
            message=f"Unknown rate limit key strategy: '{strategy}'",
            details={"hint": f"Use one of: {', '.join(KEY_EXTRACTORS)}"},
        ) from None
