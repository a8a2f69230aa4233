"""In-memory sliding-log rate limiter.

Keeps the timestamps of admitted requests per key and admits a request only
when fewer than ``max_requests`` of them fall inside the trailing window.
Avoids the fixed window's boundary burst at the cost of O(max_requests)
memory per key.
"""

from __future__ import annotations

from collections import deque

from gatekeeper.adapters.rate_limit.base import Decision, WindowCounter, validate_key
from gatekeeper.adapters.rate_limit.in_memory import InMemoryRateLimiter


class InMemorySlidingLogRateLimiter(InMemoryRateLimiter):
    """Sliding-log limiter; rejected requests are not logged."""

    algorithm = "sliding_log"

    def _prune(self, log: deque[float], now: float) -> None:
        cutoff = now - self._config.window_seconds
        while log and log[0] <= cutoff:
            log.popleft()

    def check(self, key: str, now: float | None = None) -> Decision:
        validate_key(key)
        current = self._now(now)
        limit = self._config.max_requests
        window = self._config.window_seconds

        with self._lock:
            log: deque[float] | None = self._state_by_key.get(key)
            if log is None:
                log = deque()
                self._state_by_key[key] = log
            self._prune(log, current)

            if len(log) < limit:
                # Out-of-order timestamps are clamped so the log stays sorted.
                log.append(max(current, log[-1]) if log else current)
                return self._record(
                    self._build_admitted(remaining=limit - len(log), reset_at=log[0] + window)
                )

            reset_at = log[0] + window if log else current + window
            return self._record(self._build_rejected(now=current, remaining=0, reset_at=reset_at))

    def _is_stale(self, state: deque[float], now: float) -> bool:
        if not state:
            return True
        return now - (state[-1] + self._config.window_seconds) >= self._config.eviction_grace_seconds

    def snapshot(self, key: str) -> WindowCounter | None:
        with self._lock:
            log = self._state_by_key.get(key)
            if log is None:
                return None
            window_start = log[0] if log else 0.0
            return WindowCounter(key=key, count=len(log), window_start=window_start)
