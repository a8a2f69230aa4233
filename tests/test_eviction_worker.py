"""Tests for the background eviction worker and its app lifecycle."""

import asyncio
import threading
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from gatekeeper.adapters.rate_limit.base import LimiterConfig
from gatekeeper.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gatekeeper.services.eviction import EvictionWorker


def test_run_once_evicts_expired_keys(clock) -> None:
    limiter = InMemoryFixedWindowRateLimiter(
        LimiterConfig(window_seconds=10, max_requests=1), clock=clock
    )
    limiter.check("a")
    limiter.check("b")
    clock.return_value = 1010.0

    worker = EvictionWorker(limiter, interval_seconds=60)

    assert worker.run_once() == 2
    assert limiter.stats()["keys"] == 0


def test_worker_sweeps_periodically_and_stops() -> None:
    limiter = MagicMock()
    limiter.evict.return_value = 0

    async def _scenario() -> None:
        worker = EvictionWorker(limiter, interval_seconds=0.01)
        worker.start()
        assert worker.running is True
        await asyncio.sleep(0.05)
        await worker.stop()
        assert worker.running is False

    asyncio.run(_scenario())

    assert limiter.evict.call_count >= 1


def test_worker_survives_failed_sweep() -> None:
    limiter = MagicMock()
    outcomes = iter([RuntimeError("boom")])

    def _evict() -> int:
        outcome = next(outcomes, 0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    limiter.evict.side_effect = _evict

    async def _scenario() -> None:
        worker = EvictionWorker(limiter, interval_seconds=0.01)
        worker.start()
        await asyncio.sleep(0.06)
        assert worker.running is True
        await worker.stop()

    asyncio.run(_scenario())

    assert limiter.evict.call_count >= 2


def test_app_lifespan_starts_and_stops_worker(make_app) -> None:
    app = make_app(eviction_enabled=True, eviction_interval_seconds=3600)

    with TestClient(app) as client:
        assert app.state.eviction_worker.running is True
        assert client.get("/health").status_code == 200

    assert app.state.eviction_worker.running is False


def test_app_without_eviction(make_app) -> None:
    app = make_app(eviction_enabled=False)

    with TestClient(app):
        assert app.state.eviction_worker is None


def test_sweeps_run_off_the_event_loop_thread() -> None:
    limiter = MagicMock()
    sweep_threads: list[int] = []

    def _evict() -> int:
        sweep_threads.append(threading.get_ident())
        return 0

    limiter.evict.side_effect = _evict

    async def _scenario() -> int:
        worker = EvictionWorker(limiter, interval_seconds=0.01)
        worker.start()
        await asyncio.sleep(0.05)
        await worker.stop()
        return threading.get_ident()

    loop_thread = asyncio.run(_scenario())

    assert sweep_threads
    assert loop_thread not in sweep_threads
