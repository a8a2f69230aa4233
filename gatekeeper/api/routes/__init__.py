from __future__ import annotations

from gatekeeper.api.routes.health import router as health_router
from gatekeeper.api.routes.users import router as users_router

__all__ = ["health_router", "users_router"]
