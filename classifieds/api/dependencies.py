"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
import random
from functools import lru_cache

from classifieds.config import build_algorithm_config, get_settings
from classifieds.models.schemas import AlgorithmConfig
from classifieds.repositories.memory import (
    InMemoryListingRepository,
    InMemoryPlanRepository,
)
from classifieds.services.listings import ListingService
from classifieds.services.placement import PlacementEngine


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_listing_repository() -> InMemoryListingRepository:
    """Get singleton listing repository."""
    return InMemoryListingRepository()


@lru_cache()
def get_plan_repository() -> InMemoryPlanRepository:
    """Get singleton plan repository."""
    return InMemoryPlanRepository()


@lru_cache()
def get_algorithm_config() -> AlgorithmConfig:
    """Get algorithm configuration built from settings."""
    return build_algorithm_config(get_settings())


@lru_cache()
def get_placement_engine() -> PlacementEngine:
    """Get singleton placement engine, seeded when RANDOM_SEED is set."""
    settings = get_settings()
    rng = random.Random(settings.RANDOM_SEED) if settings.RANDOM_SEED is not None else None
    return PlacementEngine(rng=rng)


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_listing_service() -> ListingService:
    """
    Get listing service with all dependencies wired.
    This is the entry point for every listing endpoint.
    """
    return ListingService(
        listing_repo=get_listing_repository(),
        plan_repo=get_plan_repository(),
        placement_engine=get_placement_engine(),
        config=get_algorithm_config(),
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_listing_repository.cache_clear()
    get_plan_repository.cache_clear()
    get_algorithm_config.cache_clear()
    get_placement_engine.cache_clear()
