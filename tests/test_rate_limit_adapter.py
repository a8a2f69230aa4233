"""Unit tests for the in-memory fixed-window rate limiter."""

import random
from unittest.mock import Mock

import pytest

from gatekeeper.adapters.rate_limit.base import LimiterConfig
from gatekeeper.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gatekeeper.core.errors import InvalidConfigError, InvalidKeyError


def _limiter(max_requests: int, window_seconds: float, **kwargs) -> InMemoryFixedWindowRateLimiter:
    config = LimiterConfig(window_seconds=window_seconds, max_requests=max_requests, **kwargs)
    return InMemoryFixedWindowRateLimiter(config)


def test_window_lifecycle_scenario() -> None:
    limiter = _limiter(max_requests=2, window_seconds=60)

    first = limiter.check("k", now=0)
    assert first.admitted is True
    assert first.remaining == 1

    second = limiter.check("k", now=1)
    assert second.admitted is True
    assert second.remaining == 0

    third = limiter.check("k", now=2)
    assert third.admitted is False
    assert third.remaining == 0
    assert third.reset_at == 60

    fourth = limiter.check("k", now=61)
    assert fourth.admitted is True
    assert fourth.remaining == 1
    assert fourth.reset_at == 121


def test_allows_up_to_limit_in_same_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(
        LimiterConfig(window_seconds=60, max_requests=3), clock=clock
    )

    assert limiter.check("k").admitted is True
    assert limiter.check("k").admitted is True
    result = limiter.check("k")
    assert result.admitted is True
    assert result.remaining == 0
    assert result.retry_after_seconds is None


def test_rejection_reports_retry_after() -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)

    limiter.check("k", now=100.0)
    blocked = limiter.check("k", now=110.5)

    assert blocked.admitted is False
    assert blocked.reset_at == 160.0
    assert blocked.retry_after_seconds == 50
    assert blocked.limit == 1


def test_rejected_requests_still_counted() -> None:
    limiter = _limiter(max_requests=2, window_seconds=60)

    for _ in range(5):
        decision = limiter.check("k", now=10)

    snapshot = limiter.snapshot("k")
    assert snapshot is not None
    assert snapshot.count == 5
    assert decision.remaining == 0


def test_window_starts_at_first_request() -> None:
    limiter = _limiter(max_requests=1, window_seconds=10)

    assert limiter.check("k", now=1003.0).reset_at == 1013.0
    assert limiter.check("k", now=1012.9).admitted is False
    assert limiter.check("k", now=1013.0).admitted is True


def test_boundary_burst_is_preserved() -> None:
    limiter = _limiter(max_requests=3, window_seconds=60)

    admitted = [limiter.check("k", now=0).admitted]
    admitted += [limiter.check("k", now=59.9).admitted for _ in range(2)]
    admitted += [limiter.check("k", now=60.0).admitted for _ in range(3)]

    assert admitted.count(True) == 6


def test_earlier_timestamp_stays_in_current_window() -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)

    assert limiter.check("k", now=500).admitted is True
    skewed = limiter.check("k", now=400)

    assert skewed.admitted is False
    assert skewed.reset_at == 560
    assert skewed.reset_at >= 400


def test_isolated_by_key() -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)

    assert limiter.check("k1", now=0).admitted is True
    assert limiter.check("k1", now=0).admitted is False
    assert limiter.check("k2", now=0).admitted is True


def test_zero_max_requests_rejects_everything() -> None:
    limiter = _limiter(max_requests=0, window_seconds=60)

    for now in (0, 1, 59, 60, 10_000):
        decision = limiter.check("k", now=now)
        assert decision.admitted is False
        assert decision.remaining == 0


@pytest.mark.parametrize("key", ["", "   ", None, 42])
def test_invalid_key_raises(key) -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)

    with pytest.raises(InvalidKeyError) as exc_info:
        limiter.check(key, now=0)

    assert exc_info.value.code == "invalid_rate_limit_key"
    assert limiter.stats()["checks"] == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_requests": 1, "window_seconds": 0},
        {"max_requests": 1, "window_seconds": -5},
        {"max_requests": 1, "window_seconds": float("nan")},
        {"max_requests": 1, "window_seconds": float("inf")},
        {"max_requests": -1, "window_seconds": 60},
        {"max_requests": 1, "window_seconds": 60, "eviction_grace_seconds": -1},
        {"max_requests": 1, "window_seconds": 60, "algorithm": "leaky_bucket"},
    ],
)
def test_invalid_config_fails_at_construction(kwargs: dict) -> None:
    with pytest.raises(InvalidConfigError):
        LimiterConfig(**kwargs)


def test_clock_is_used_when_now_omitted() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(
        LimiterConfig(window_seconds=10, max_requests=1), clock=clock
    )

    assert limiter.check("k").admitted is True
    assert limiter.check("k").admitted is False

    clock.return_value = 1010.0
    assert limiter.check("k").admitted is True


def test_evict_removes_only_expired_windows() -> None:
    limiter = _limiter(max_requests=5, window_seconds=60)
    limiter.check("old", now=0)
    limiter.check("fresh", now=50)

    assert limiter.evict(now=60) == 1
    assert limiter.snapshot("old") is None
    assert limiter.snapshot("fresh") is not None
    assert limiter.stats()["evictions"] == 1


def test_evict_honours_grace_period() -> None:
    limiter = _limiter(max_requests=5, window_seconds=60, eviction_grace_seconds=30)
    limiter.check("k", now=0)

    assert limiter.evict(now=89) == 0
    assert limiter.evict(now=90) == 1


def test_evicted_key_starts_fresh_window() -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)
    limiter.check("k", now=0)
    limiter.evict(now=120)

    decision = limiter.check("k", now=120)
    assert decision.admitted is True
    assert decision.reset_at == 180


def test_reset_single_key_and_all() -> None:
    limiter = _limiter(max_requests=1, window_seconds=60)
    limiter.check("a", now=0)
    limiter.check("b", now=0)

    limiter.reset("a")
    assert limiter.check("a", now=1).admitted is True
    assert limiter.check("b", now=1).admitted is False

    limiter.reset()
    assert limiter.stats()["keys"] == 0


def test_stats_track_outcomes() -> None:
    limiter = _limiter(max_requests=2, window_seconds=60)
    for _ in range(5):
        limiter.check("k", now=0)

    stats = limiter.stats()
    assert stats["algorithm"] == "fixed_window"
    assert stats["checks"] == 5
    assert stats["admitted"] == 2
    assert stats["rejected"] == 3
    assert stats["keys"] == 1


def test_random_bursts_never_exceed_quota_per_window() -> None:
    rng = random.Random(1234)
    max_requests, window = 7, 30.0
    limiter = _limiter(max_requests=max_requests, window_seconds=window)

    now = 0.0
    admitted_per_window: dict[float, int] = {}
    for _ in range(2000):
        now += rng.choice([0.0, 0.0, 0.125, 1.5, 12.0])
        decision = limiter.check("k", now=now)
        window_start = decision.reset_at - window

        assert 0 <= decision.remaining <= max_requests
        assert decision.reset_at >= now
        if decision.admitted:
            admitted_per_window[window_start] = admitted_per_window.get(window_start, 0) + 1

    assert admitted_per_window
    assert max(admitted_per_window.values()) <= max_requests


def test_identical_limiters_make_identical_decisions() -> None:
    rng = random.Random(99)
    calls = [(rng.choice("abc"), float(i // 3)) for i in range(300)]

    first = _limiter(max_requests=4, window_seconds=20)
    second = _limiter(max_requests=4, window_seconds=20)

    assert [first.check(k, now=t) for k, t in calls] == [second.check(k, now=t) for k, t in calls]
