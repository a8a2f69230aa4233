from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter
from gatekeeper.core.rate_limit import get_rate_limiter
from gatekeeper.schemas.rate_limit import RateLimitStats

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Not rate limited, so load balancers and monitors can always reach it.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/internal/rate-limit/stats", response_model=RateLimitStats)
def rate_limit_stats(
    request: Request,
    limiter: AbstractRateLimiter = Depends(get_rate_limiter),
) -> RateLimitStats:
    """Expose aggregate limiter counters for monitoring.

    Raises:
        HTTPException: 404 when stats are disabled via APP_STATS_ENABLED.
    """

    if not request.app.state.settings.app.stats_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return RateLimitStats(**limiter.stats())
