"""Pydantic schemas for rate limiter introspection."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitStats(BaseModel):
    """Aggregate limiter counters; individual keys are never exposed."""

    algorithm: str = Field(..., description="Active limiter algorithm.")
    window_seconds: float = Field(..., description="Window size in seconds.")
    max_requests: int = Field(..., description="Admissions allowed per window per key.")
    keys: int = Field(..., description="Keys currently tracked in memory.")
    checks: int = Field(..., description="Checks performed since startup.")
    admitted: int = Field(..., description="Checks that admitted the request.")
    rejected: int = Field(..., description="Checks that rejected the request.")
    evictions: int = Field(..., description="Keys dropped by eviction sweeps.")
