"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gatekeeper.adapters.rate_limit.base import KeyExtractor, LimiterConfig


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) populates values from environment variables, but
    static type checkers treat required fields as constructor arguments.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    title: str = Field(
        "Gatekeeper API",
        description="Application title shown in OpenAPI docs",
    )
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    stats_enabled: bool = Field(
        True,
        description="Expose limiter statistics at /internal/rate-limit/stats",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        3000,
        description="Port the HTTP server listens on",
        ge=1,
        le=65535,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Request rate limiting configuration.

    Defaults mirror a 100 requests per 15 minutes policy; the quota and window
    are deployment decisions, not constants.
    """

    enabled: bool = Field(
        True,
        description="Enable rate limiting on API routes",
    )
    algorithm: Literal["fixed_window", "sliding_log", "token_bucket"] = Field(
        "fixed_window",
        description="Limiter algorithm",
    )
    window_seconds: float = Field(
        900,
        description="Rate limit window size in seconds",
        gt=0,
    )
    max_requests: int = Field(
        100,
        description="Maximum number of requests admitted per window (per key); 0 blocks all",
        ge=0,
    )
    key_strategy: Literal["ip", "api_key", "route"] = Field(
        "ip",
        description="How requests are grouped: client IP, X-API-Key header, or route + IP",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers, and Retry-After when throttling",
    )
    message: str = Field(
        "Too many requests, please try again later.",
        description="Response detail returned with HTTP 429",
    )
    eviction_enabled: bool = Field(
        True,
        description="Periodically drop state for idle keys",
    )
    eviction_interval_seconds: float = Field(
        60,
        description="Seconds between eviction sweeps",
        gt=0,
    )
    eviction_grace_seconds: float = Field(
        0,
        description="How long expired entries are retained before eviction",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def to_limiter_config(self, key_extractor: KeyExtractor | None = None) -> LimiterConfig:
        """Build an immutable LimiterConfig from these settings.

        Args:
            key_extractor: Function mapping a request to its limiter key.

        Returns:
            LimiterConfig: Validated configuration.

        Raises:
            InvalidConfigError: If the values are not a valid limiter config.
        """

        return LimiterConfig(
            window_seconds=self.window_seconds,
            max_requests=self.max_requests,
            key_extractor=key_extractor,
            algorithm=self.algorithm,
            eviction_grace_seconds=self.eviction_grace_seconds,
        )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Log destination",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate request correlation ids",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
