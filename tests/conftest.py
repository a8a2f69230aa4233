"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any import that might load settings.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_EVICTION_ENABLED", "false")

from typing import Callable
from unittest.mock import Mock

import pytest
from fastapi import FastAPI

from gatekeeper.core.app_factory import create_app
from gatekeeper.core.config import AppSettings, LogSettings, RateLimitSettings, Settings


@pytest.fixture
def clock() -> Mock:
    """Controllable time source starting at t=1000s."""
    return Mock(return_value=1000.0)


@pytest.fixture
def make_app(clock: Mock) -> Callable[..., FastAPI]:
    """Build an isolated app whose limiter reads the ``clock`` fixture.

    Keyword arguments override RateLimitSettings fields.
    """

    def _make(**rate_limit_overrides) -> FastAPI:
        rate_limit_overrides.setdefault("eviction_enabled", False)
        app_settings = Settings(
            app=AppSettings(),
            rate_limit=RateLimitSettings(**rate_limit_overrides),
            log=LogSettings(),
        )
        return create_app(app_settings, clock=clock, configure_logs=False)

    return _make
