"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- No module-level limiter: the app factory owns one limiter per app and
  stores it on ``app.state``; this module only reads it.
- Rejection is a normal outcome: the limiter returns a Decision, and only
  here is it translated into HTTP 429.
"""

from __future__ import annotations

import logging
import math

from fastapi import HTTPException, Request, Response, status

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter, Decision
from gatekeeper.core.config import RateLimitSettings
from gatekeeper.core.keys import get_key_extractor
from gatekeeper.core.logging import hash_key

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def get_rate_limit_settings(request: Request) -> RateLimitSettings:
    return request.app.state.rate_limit_settings


def build_rate_limit_headers(decision: Decision) -> dict[str, str]:
    """Informational headers letting well-behaved clients back off.

    Args:
        decision: Limiter decision for the current request.

    Returns:
        dict: X-RateLimit-* headers, plus Retry-After when rejected.
    """

    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(math.ceil(decision.reset_at))),
    }
    if not decision.admitted:
        headers["Retry-After"] = str(decision.retry_after_seconds or 0)
    return headers


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, counts the request against the requester's quota. If the
    quota for the current window is exhausted, raises HTTP 429.

    Args:
        request: FastAPI request.
        response: Response the route will return; receives rate limit headers.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
    """

    cfg = get_rate_limit_settings(request)
    if not cfg.enabled:
        return

    limiter = get_rate_limiter(request)
    extractor = limiter.config.key_extractor or get_key_extractor(cfg.key_strategy)
    key = extractor(request)
    key_hash = hash_key(key)

    decision = limiter.check(key)
    headers = build_rate_limit_headers(decision) if cfg.include_headers else {}

    if decision.admitted:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_strategy": cfg.key_strategy,
                "key_hash": key_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "window_s": cfg.window_seconds,
            },
        )
        response.headers.update(headers)
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_strategy": cfg.key_strategy,
            "key_hash": key_hash,
            "limit": decision.limit,
            "remaining": decision.remaining,
            "window_s": cfg.window_seconds,
            "retry_after_s": decision.retry_after_seconds,
            "request_path": request.url.path,
        },
    )

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=cfg.message,
        headers=headers or None,
    )
