"""Periodic eviction of idle rate limiter state.

Per-IP limiting under client churn creates one entry per address ever seen;
this worker sweeps expired entries on a fixed interval so memory tracks the
active client set instead.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


class EvictionWorker:
    """Runs ``limiter.evict()`` every ``interval_seconds`` in a worker thread.

    Attributes:
        interval_seconds: Delay between sweeps.
    """

    def __init__(self, limiter: AbstractRateLimiter, *, interval_seconds: float) -> None:
        self._limiter = limiter
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Perform one sweep and log how many keys were dropped."""

        removed = self._limiter.evict()
        if removed:
            logger.info(
                "rate_limit.evicted",
                extra={"removed": removed, "keys": self._limiter.stats().get("keys")},
            )
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                # Sweep off the event loop so a large key map cannot stall it.
                await asyncio.to_thread(self.run_once)
            except Exception:
                # Keep sweeping; a failed sweep only delays reclamation.
                logger.exception("rate_limit.eviction_failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.debug("rate_limit.eviction_started", extra={"interval_s": self.interval_seconds})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
