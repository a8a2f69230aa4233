"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap algorithms or storage backends with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from gatekeeper.core.errors import InvalidConfigError, InvalidKeyError

ALGORITHM_FIXED_WINDOW = "fixed_window"
ALGORITHM_SLIDING_LOG = "sliding_log"
ALGORITHM_TOKEN_BUCKET = "token_bucket"

SUPPORTED_ALGORITHMS = (
    ALGORITHM_FIXED_WINDOW,
    ALGORITHM_SLIDING_LOG,
    ALGORITHM_TOKEN_BUCKET,
)

KeyExtractor = Callable[[Any], str]


@dataclass(frozen=True)
class LimiterConfig:
    """Immutable limiter configuration.

    Attributes:
        window_seconds: Size of the window in seconds (must be > 0).
        max_requests: Admissions allowed per window per key (0 rejects all).
        key_extractor: Optional function mapping a request to its limiter key.
            The limiter itself never calls it; the HTTP layer does.
        algorithm: One of SUPPORTED_ALGORITHMS.
        eviction_grace_seconds: How long an expired entry is retained before
            ``evict`` removes it.

    Raises:
        InvalidConfigError: On construction with invalid values.
    """

    window_seconds: float
    max_requests: int
    key_extractor: KeyExtractor | None = None
    algorithm: str = ALGORITHM_FIXED_WINDOW
    eviction_grace_seconds: float = 0.0

    def __post_init__(self) -> None:
        if not self.window_seconds > 0 or math.isinf(self.window_seconds):
            raise InvalidConfigError(
                code="invalid_window",
                message="window_seconds must be a positive, finite number",
                details={"field": "window_seconds", "value": self.window_seconds},
            )
        if self.max_requests < 0:
            raise InvalidConfigError(
                code="invalid_max_requests",
                message="max_requests must be >= 0",
                details={"field": "max_requests", "value": self.max_requests},
            )
        if self.eviction_grace_seconds < 0:
            raise InvalidConfigError(
                code="invalid_eviction_grace",
                message="eviction_grace_seconds must be >= 0",
                details={"field": "eviction_grace_seconds", "value": self.eviction_grace_seconds},
            )
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise InvalidConfigError(
                code="unsupported_algorithm",
                message=f"Unsupported rate limit algorithm: {self.algorithm}",
                details={
                    "field": "algorithm",
                    "value": self.algorithm,
                    "hint": f"Use one of: {', '.join(SUPPORTED_ALGORITHMS)}",
                },
            )


@dataclass(frozen=True)
class Decision:
    """Result of a rate limit check.

    Attributes:
        admitted: Whether the request is allowed to proceed.
        remaining: Remaining admissions in the current window, in [0, limit].
        reset_at: UNIX epoch seconds when the current window resets.
        limit: Max requests per window.
        retry_after_seconds: Suggested wait time in seconds when rejected.
    """

    admitted: bool
    remaining: int
    reset_at: float
    limit: int
    retry_after_seconds: int | None = None


@dataclass(frozen=True)
class WindowCounter:
    """Read-only snapshot of one key's counter."""

    key: str
    count: int
    window_start: float


def validate_key(key: Any) -> str:
    """Ensure a limiter key is a non-empty string.

    Args:
        key: Candidate key.

    Returns:
        The key unchanged.

    Raises:
        InvalidKeyError: If key is not a string or is empty/blank.
    """

    if not isinstance(key, str) or not key.strip():
        raise InvalidKeyError(
            code="invalid_rate_limit_key",
            message="key must be a non-empty string",
            details={"hint": "Check the configured key extractor"},
        )
    return key


def retry_after(reset_at: float, now: float) -> int:
    """Seconds a rejected client should wait before retrying."""
    return max(0, int(math.ceil(reset_at - now)))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    def __init__(self, config: LimiterConfig) -> None:
        self._config = config

    @property
    def config(self) -> LimiterConfig:
        return self._config

    @abstractmethod
    def check(self, key: str, now: float | None = None) -> Decision:
        """Count one request for ``key`` and decide whether it is admitted.

        Args:
            key: Unique identifier (e.g., API key, IP address).
            now: Timestamp of the request; defaults to the limiter's clock.

        Returns:
            Decision describing whether it was admitted.

        Raises:
            InvalidKeyError: If key is empty.
        """
        raise NotImplementedError

    @abstractmethod
    def evict(self, now: float | None = None) -> int:
        """Drop state for keys idle past the retention grace period.

        Returns:
            Number of keys removed.
        """
        raise NotImplementedError

    @abstractmethod
    def snapshot(self, key: str) -> WindowCounter | None:
        """Return a consistent view of ``key``'s state, if tracked."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int | float | str]:
        """Return lightweight limiter metrics without exposing keys."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str | None = None) -> None:
        """Forget one key's state, or every key's when ``key`` is None."""
        raise NotImplementedError
