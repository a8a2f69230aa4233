"""Application factory for the FastAPI app.

Centralizes app construction (limiter, middleware, handlers, routers) so
tests can build isolated apps with their own settings, limiter and clock.
Each app owns exactly one limiter, kept on ``app.state``.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from gatekeeper.adapters.rate_limit.base import AbstractRateLimiter
from gatekeeper.adapters.rate_limit.factory import create_rate_limiter
from gatekeeper.api.routes import health_router, users_router
from gatekeeper.core.config import Settings, settings as default_settings
from gatekeeper.core.exception_handlers import setup_exception_handlers
from gatekeeper.core.keys import get_key_extractor
from gatekeeper.core.logging import configure_logging
from gatekeeper.core.middleware import request_id_middleware
from gatekeeper.core.openapi import apply_openapi_customizations
from gatekeeper.services.eviction import EvictionWorker

logger = logging.getLogger(__name__)


def build_rate_limiter(
    app_settings: Settings,
    *,
    clock: Callable[[], float] = time.time,
) -> AbstractRateLimiter:
    """Create the limiter described by ``app_settings.rate_limit``.

    Raises:
        InvalidConfigError: If the rate limit settings are invalid.
    """

    cfg = app_settings.rate_limit
    config = cfg.to_limiter_config(key_extractor=get_key_extractor(cfg.key_strategy))
    return create_rate_limiter(config, clock=clock)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    worker: EvictionWorker | None = app.state.eviction_worker
    if worker is not None:
        worker.start()
    logger.info("app.startup", extra={"app_env": app.state.settings.app_env})
    try:
        yield
    finally:
        if worker is not None:
            await worker.stop()
        logger.info("app.shutdown")


def create_app(
    app_settings: Settings | None = None,
    *,
    limiter: AbstractRateLimiter | None = None,
    clock: Callable[[], float] = time.time,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the environment-loaded ones.
        limiter: Pre-built limiter (tests); built from settings when omitted.
        clock: Time source for a limiter built from settings.
        configure_logs: Whether to (re)configure root logging.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        InvalidConfigError: If the rate limit configuration is invalid.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log, debug=cfg.app.debug)

    # Fail fast on bad limiter config, before the app can serve anything
    rate_limiter = limiter or build_rate_limiter(cfg, clock=clock)

    app = FastAPI(
        title=cfg.app.title,
        description=(
            "Sample JSON API fronted by a per-client request rate limiter. "
            "Rate limited responses carry X-RateLimit-* headers; rejected "
            "requests receive HTTP 429 with Retry-After."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=_lifespan,
    )

    app.state.settings = cfg
    app.state.rate_limit_settings = cfg.rate_limit
    app.state.rate_limiter = rate_limiter
    app.state.eviction_worker = (
        EvictionWorker(rate_limiter, interval_seconds=cfg.rate_limit.eviction_interval_seconds)
        if cfg.rate_limit.eviction_enabled
        else None
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(users_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
