"""API routes."""

from waitlist.api.routes.admin import router as admin_router
from waitlist.api.routes.health import router as health_router
from waitlist.api.routes.signup import router as signup_router

__all__ = ["admin_router", "health_router", "signup_router"]
