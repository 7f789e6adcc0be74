"""Route handlers for the Web API."""

from crud_users.web.routes.health import router as health_router
from crud_users.web.routes.users import router as users_router

__all__ = [
    "health_router",
    "users_router",
]
