"""Pydantic schemas for the sample user endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class User(BaseModel):
    """A user as listed by GET /api/users."""

    id: int = Field(..., description="Numeric user identifier.")
    name: str = Field(..., description="Display name.")


class CreateUserResponse(BaseModel):
    """Acknowledgement returned by POST /api/users."""

    message: str = Field(..., description="Human-readable confirmation.")
    user: Any = Field(
        default=None,
        description="The submitted payload, echoed back unchanged.",
    )


class WelcomeResponse(BaseModel):
    message: str
