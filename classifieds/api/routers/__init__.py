"""API routers package."""
from .health import router as health_router
from .listings import router as listings_router

__all__ = ["health_router", "listings_router"]
