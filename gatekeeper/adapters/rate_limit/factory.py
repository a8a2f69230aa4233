"""Factory pattern for creating rate limiter instances."""

from __future__ import annotations

import logging
import time
from typing import Callable

from gatekeeper.adapters.rate_limit.base import (
    ALGORITHM_FIXED_WINDOW,
    ALGORITHM_SLIDING_LOG,
    ALGORITHM_TOKEN_BUCKET,
    AbstractRateLimiter,
    LimiterConfig,
)
from gatekeeper.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gatekeeper.adapters.rate_limit.sliding_log import InMemorySlidingLogRateLimiter
from gatekeeper.adapters.rate_limit.token_bucket import InMemoryTokenBucketRateLimiter
from gatekeeper.core.errors import InvalidConfigError

logger = logging.getLogger(__name__)


def create_rate_limiter(
    config: LimiterConfig,
    *,
    clock: Callable[[], float] = time.time,
) -> AbstractRateLimiter:
    """Instantiate the limiter selected by ``config.algorithm``.

    Args:
        config: Validated limiter configuration.
        clock: Time source used when callers do not pass ``now``.

    Returns:
        AbstractRateLimiter: Configured limiter instance.

    Raises:
        InvalidConfigError: If the algorithm is not supported.
    """
    algorithm = config.algorithm

    if algorithm == ALGORITHM_FIXED_WINDOW:
        limiter: AbstractRateLimiter = InMemoryFixedWindowRateLimiter(config, clock=clock)
    elif algorithm == ALGORITHM_SLIDING_LOG:
        limiter = InMemorySlidingLogRateLimiter(config, clock=clock)
    elif algorithm == ALGORITHM_TOKEN_BUCKET:
        limiter = InMemoryTokenBucketRateLimiter(config, clock=clock)
    else:
        raise InvalidConfigError(
            code="unsupported_algorithm",
            message=f"Unknown rate limit algorithm: '{algorithm}'",
        )

    logger.info(
        "rate_limiter.created",
        extra={
            "algorithm": algorithm,
            "max_requests": config.max_requests,
            "window_s": config.window_seconds,
        },
    )
    return limiter
