"""Models package - domain entities and interfaces."""
from .interfaces import ListingRepository, PlanRepository
from .schemas import (
    DEFAULT_ALGORITHM_CONFIG,
    AlgorithmConfig,
    CategorySections,
    Condition,
    DisplayMetrics,
    DisplayResult,
    DisplaySettings,
    ErrorResponse,
    GeoPoint,
    HomepageResponse,
    HomepageSections,
    Listing,
    ListingLocation,
    ListingStatus,
    PlanTier,
    PlanType,
    ScoredListing,
    SearchParams,
    SortBy,
)

__all__ = [
    # Interfaces
    "ListingRepository",
    "PlanRepository",
    # Schemas
    "DEFAULT_ALGORITHM_CONFIG",
    "AlgorithmConfig",
    "CategorySections",
    "Condition",
    "DisplayMetrics",
    "DisplayResult",
    "DisplaySettings",
    "ErrorResponse",
    "GeoPoint",
    "HomepageResponse",
    "HomepageSections",
    "Listing",
    "ListingLocation",
    "ListingStatus",
    "PlanTier",
    "PlanType",
    "ScoredListing",
    "SearchParams",
    "SortBy",
]
