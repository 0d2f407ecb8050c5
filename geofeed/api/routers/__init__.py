"""API routers package."""
from .feed import router as feed_router
from .health import router as health_router
from .notifications import router as notification_router

__all__ = ["feed_router", "health_router", "notification_router"]
