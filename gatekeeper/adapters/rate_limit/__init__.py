"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
in-memory limiters and later migrate to Redis or another shared store without
changing the API layer.
"""

from gatekeeper.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    LimiterConfig,
    WindowCounter,
)
from gatekeeper.adapters.rate_limit.factory import create_rate_limiter
from gatekeeper.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gatekeeper.adapters.rate_limit.sliding_log import InMemorySlidingLogRateLimiter
from gatekeeper.adapters.rate_limit.token_bucket import InMemoryTokenBucketRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "Decision",
    "InMemoryFixedWindowRateLimiter",
    "InMemorySlidingLogRateLimiter",
    "InMemoryTokenBucketRateLimiter",
    "LimiterConfig",
    "WindowCounter",
    "create_rate_limiter",
]
