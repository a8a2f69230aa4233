"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the key -> counter mapping, so the
  read-increment-compare sequence of ``check`` is atomic per key, and
  ``evict``/``snapshot``/``stats`` never observe a half-applied update.
"""

from __future__ import annotations

import threading
import time
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from gatekeeper.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    LimiterConfig,
    WindowCounter,
    retry_after,
    validate_key,
)


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryRateLimiter(AbstractRateLimiter):
    """Shared plumbing for in-memory limiters: clock, lock and counters."""

    algorithm: str = ""

    def __init__(
        self,
        config: LimiterConfig,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(config)
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, Any] = {}
        self._checks = 0
        self._admitted = 0
        self._rejected = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"{type(self).__name__}(window_seconds={self._config.window_seconds}, "
            f"max_requests={self._config.max_requests}, keys={len(self._state_by_key)})"
        )

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _record(self, decision: Decision) -> Decision:
        self._checks += 1
        if decision.admitted:
            self._admitted += 1
        else:
            self._rejected += 1
        return decision

    def _build_admitted(self, *, remaining: int, reset_at: float) -> Decision:
        return Decision(
            admitted=True,
            remaining=remaining,
            reset_at=reset_at,
            limit=self._config.max_requests,
            retry_after_seconds=None,
        )

    def _build_rejected(self, *, now: float, remaining: int, reset_at: float) -> Decision:
        return Decision(
            admitted=False,
            remaining=remaining,
            reset_at=reset_at,
            limit=self._config.max_requests,
            retry_after_seconds=retry_after(reset_at, now),
        )

    @abstractmethod
    def _is_stale(self, state: Any, now: float) -> bool:
        """Whether a key's state can be dropped at ``now``."""
        raise NotImplementedError

    def evict(self, now: float | None = None) -> int:
        """Remove state for keys that went idle more than the grace period ago.

        Args:
            now: Reference timestamp; defaults to the limiter's clock.

        Returns:
            Number of keys removed.
        """

        current = self._now(now)
        with self._lock:
            stale_keys = [k for k, state in self._state_by_key.items() if self._is_stale(state, current)]
            for key in stale_keys:
                del self._state_by_key[key]
            self._evictions += len(stale_keys)
        return len(stale_keys)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._state_by_key.clear()
            else:
                self._state_by_key.pop(key, None)

    def stats(self) -> dict[str, int | float | str]:
        with self._lock:
            return {
                "algorithm": self.algorithm,
                "window_seconds": self._config.window_seconds,
                "max_requests": self._config.max_requests,
                "keys": len(self._state_by_key),
                "checks": self._checks,
                "admitted": self._admitted,
                "rejected": self._rejected,
                "evictions": self._evictions,
            }


class InMemoryFixedWindowRateLimiter(InMemoryRateLimiter):
    """Rate limiter using a fixed time window per key.

    A key's window opens at its first request and lasts ``window_seconds``.
    Every check increments the counter, rejected ones included, so the count
    reflects real traffic; ``remaining`` is clamped at zero.

    Trade-off: windows do not slide, so up to ``2 * max_requests`` requests
    can be admitted around a window boundary.
    """

    algorithm = "fixed_window"

    def _get_or_reset_state(self, key: str, now: float) -> _WindowState:
        """Get the current state for key or open a new window when expired.

        A ``now`` earlier than ``window_start`` (clock skew) is treated as
        inside the current window.
        """
        state = self._state_by_key.get(key)
        if state is None or now - state.window_start >= self._config.window_seconds:
            state = _WindowState(window_start=now, count=0)
            self._state_by_key[key] = state
        return state

    def check(self, key: str, now: float | None = None) -> Decision:
        """Count one request for ``key`` and decide whether it is admitted.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            now: Request timestamp; defaults to the injected clock.

        Returns:
            Decision with admission flag and quota metadata.

        Raises:
            InvalidKeyError: If key is empty.
        """

        validate_key(key)
        current = self._now(now)
        limit = self._config.max_requests

        with self._lock:
            state = self._get_or_reset_state(key, current)
            state.count += 1
            remaining = max(0, limit - state.count)
            reset_at = state.window_start + self._config.window_seconds

            if state.count <= limit:
                return self._record(self._build_admitted(remaining=remaining, reset_at=reset_at))
            return self._record(
                self._build_rejected(now=current, remaining=remaining, reset_at=reset_at)
            )

    def _is_stale(self, state: _WindowState, now: float) -> bool:
        window_end = state.window_start + self._config.window_seconds
        return now - window_end >= self._config.eviction_grace_seconds

    def snapshot(self, key: str) -> WindowCounter | None:
        with self._lock:
            state = self._state_by_key.get(key)
            if state is None:
                return None
            return WindowCounter(key=key, count=state.count, window_start=state.window_start)
