"""Services package - ranking engine and business logic layer."""
from .listings import ListingService
from .placement import (
    PlacementEngine,
    get_category_sections,
    get_homepage_sections,
    get_similar_listings,
    search_listings,
)
from .ranking import (
    PLAN_TIERS,
    EngagementScoring,
    LocationScoring,
    PlanScoring,
    RecencyScoring,
    RelevanceScoring,
    ScoreCalculator,
    ScoringStrategy,
    compute_score,
    get_plan_tier,
    passes_display_gate,
)
from .rotation import get_rotation_start

__all__ = [
    "PLAN_TIERS",
    "EngagementScoring",
    "ListingService",
    "LocationScoring",
    "PlacementEngine",
    "PlanScoring",
    "RecencyScoring",
    "RelevanceScoring",
    "ScoreCalculator",
    "ScoringStrategy",
    "compute_score",
    "get_category_sections",
    "get_homepage_sections",
    "get_plan_tier",
    "get_rotation_start",
    "get_similar_listings",
    "passes_display_gate",
    "search_listings",
]
