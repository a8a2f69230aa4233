"""In-memory token-bucket rate limiter.

Each key owns a bucket holding up to ``max_requests`` tokens that refills at
``max_requests / window_seconds`` tokens per second. Every check consumes one
token; a request is rejected when less than one token is available.
O(1) memory and time per key.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from gatekeeper.adapters.rate_limit.base import Decision, WindowCounter, validate_key
from gatekeeper.adapters.rate_limit.in_memory import InMemoryRateLimiter


@dataclass
class _Bucket:
    tokens: float
    last_refill: float


class InMemoryTokenBucketRateLimiter(InMemoryRateLimiter):
    """Token-bucket limiter smoothing traffic instead of resetting per window."""

    algorithm = "token_bucket"

    @property
    def _refill_rate(self) -> float:
        return self._config.max_requests / self._config.window_seconds

    def _refill(self, bucket: _Bucket, now: float) -> None:
        # Never move backwards in time: a skewed clock earns no tokens.
        elapsed = max(0.0, now - bucket.last_refill)
        bucket.tokens = min(float(self._config.max_requests), bucket.tokens + elapsed * self._refill_rate)
        bucket.last_refill = max(bucket.last_refill, now)

    def _seconds_until(self, bucket: _Bucket, tokens: float) -> float:
        missing = max(0.0, tokens - bucket.tokens)
        if missing == 0.0:
            return 0.0
        return missing / self._refill_rate

    def check(self, key: str, now: float | None = None) -> Decision:
        validate_key(key)
        current = self._now(now)
        capacity = self._config.max_requests

        with self._lock:
            bucket = self._state_by_key.get(key)
            if bucket is None:
                bucket = _Bucket(tokens=float(capacity), last_refill=current)
                self._state_by_key[key] = bucket
            else:
                self._refill(bucket, current)

            if capacity == 0:
                return self._record(
                    self._build_rejected(
                        now=current, remaining=0, reset_at=current + self._config.window_seconds
                    )
                )

            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                reset_at = bucket.last_refill + self._seconds_until(bucket, float(capacity))
                return self._record(
                    self._build_admitted(remaining=int(math.floor(bucket.tokens)), reset_at=reset_at)
                )

            reset_at = bucket.last_refill + self._seconds_until(bucket, float(capacity))
            wait = bucket.last_refill + self._seconds_until(bucket, 1.0) - current
            return self._record(
                Decision(
                    admitted=False,
                    remaining=0,
                    reset_at=reset_at,
                    limit=capacity,
                    retry_after_seconds=max(0, int(math.ceil(wait))),
                )
            )

    def _is_stale(self, state: _Bucket, now: float) -> bool:
        # A bucket that would be full again carries no information.
        full_at = state.last_refill + self._seconds_until(state, float(self._config.max_requests))
        return now - full_at >= self._config.eviction_grace_seconds

    def snapshot(self, key: str) -> WindowCounter | None:
        with self._lock:
            bucket = self._state_by_key.get(key)
            if bucket is None:
                return None
            used = self._config.max_requests - int(math.floor(bucket.tokens))
            return WindowCounter(key=key, count=max(0, used), window_start=bucket.last_refill)
