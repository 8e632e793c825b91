"""
Health check router for observability.
"""
from fastapi import APIRouter

from classifieds.api.dependencies import get_algorithm_config, get_listing_repository

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check() -> dict:
    """
    Readiness check for Kubernetes.
    Returns snapshot size and the active scoring weights.
    """
    listings = await get_listing_repository().get_snapshot()
    config = get_algorithm_config()

    return {
        "status": "ready",
        "listings": {
            "total": len(listings),
            "active": sum(1 for listing in listings if listing.is_active),
        },
        "weights": config.weights.model_dump(),
    }
