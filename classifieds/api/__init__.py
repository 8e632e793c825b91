"""API package - FastAPI routes and dependencies."""
from .dependencies import get_listing_service
from .routers import health_router, listings_router

__all__ = ["get_listing_service", "health_router", "listings_router"]
