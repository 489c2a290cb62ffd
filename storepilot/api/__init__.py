"""API routers."""

from storepilot.api.auth import router as auth_router
from storepilot.api.health import router as health_router
from storepilot.api.profile import router as profile_router
from storepilot.api.stores import router as stores_router

__all__ = [
    "auth_router",
    "health_router",
    "profile_router",
    "stores_router",
]
