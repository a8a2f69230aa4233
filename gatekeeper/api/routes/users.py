from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Body, Depends, status

from gatekeeper.core.rate_limit import enforce_rate_limit
from gatekeeper.schemas.users import CreateUserResponse, User, WelcomeResponse

# Every route on this router counts against the caller's quota.
router = APIRouter(dependencies=[Depends(enforce_rate_limit)])

_USERS: tuple[User, ...] = (
    User(id=1, name="Alice"),
    User(id=2, name="Bob"),
)


@router.get("/", response_model=WelcomeResponse, tags=["Root"])
def welcome() -> WelcomeResponse:
    """Greeting endpoint."""

    return WelcomeResponse(message="Welcome to the Gatekeeper API!")


@router.get("/api/users", response_model=List[User], tags=["Users"])
def list_users() -> List[User]:
    """Return the static sample user list."""

    return list(_USERS)


@router.post(
    "/api/users",
    response_model=CreateUserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
)
def create_user(user: Any = Body(...)) -> CreateUserResponse:
    """Acknowledge a user payload.

    Nothing is persisted; the body is echoed back so clients can verify what
    was received.

    Args:
        user: Any JSON value describing the user.

    Returns:
        CreateUserResponse: Confirmation message and the echoed payload.
    """

    return CreateUserResponse(message="User created", user=user)
