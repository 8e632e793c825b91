"""
Ranking engine service.
Per-listing scoring from five weighted factors and the plan-tier display gate.
"""
import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Tuple

from classifieds.models.schemas import (
    DEFAULT_ALGORITHM_CONFIG,
    AlgorithmConfig,
    GeoPoint,
    Listing,
    PlanTier,
    PlanType,
)
from classifieds.services.geo import haversine_km

logger = logging.getLogger(__name__)


# =============================================================================
# Plan Tiers
# =============================================================================


PLAN_TIERS: Dict[str, PlanTier] = {
    PlanType.FREE.value: PlanTier(
        type=PlanType.FREE,
        name="Grátis",
        priority_score=10,
        display_probability=0.40,
        position_boost=1.0,
    ),
    PlanType.BASIC.value: PlanTier(
        type=PlanType.BASIC,
        name="Básico",
        priority_score=30,
        display_probability=0.65,
        position_boost=1.5,
    ),
    PlanType.PREMIUM.value: PlanTier(
        type=PlanType.PREMIUM,
        name="Premium",
        priority_score=60,
        display_probability=0.85,
        position_boost=2.0,
    ),
    PlanType.FEATURED.value: PlanTier(
        type=PlanType.FEATURED,
        name="Destaque",
        priority_score=85,
        display_probability=0.95,
        position_boost=2.5,
    ),
    PlanType.ENTERPRISE.value: PlanTier(
        type=PlanType.ENTERPRISE,
        name="Empresarial",
        priority_score=100,
        display_probability=1.0,
        position_boost=3.0,
    ),
}


def get_plan_tier(plan_type: str) -> PlanTier:
    """Look up a tier; unknown tiers get the lowest tier's constants."""
    return PLAN_TIERS.get(plan_type, PLAN_TIERS[PlanType.FREE.value])


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RandomSource(Protocol):
    """Anything exposing `random()` -> float in [0, 1), e.g. random.Random."""

    def random(self) -> float:
        ...


# =============================================================================
# Scoring Strategy (Strategy Pattern)
# =============================================================================


class ScoringStrategy(ABC):
    """Abstract base class for the 0-100 sub-scores."""

    @abstractmethod
    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        """
        Calculate this sub-score.

        Returns:
            Tuple of (score in 0-100, weight name)
        """
        pass


class PlanScoring(ScoringStrategy):
    """Fixed score per plan tier."""

    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        return get_plan_tier(listing.plan_type).priority_score, "plan_priority"


class RecencyScoring(ScoringStrategy):
    """Linear decay of 2 points per day since publication."""

    POINTS_PER_DAY = 2.0
    UNPUBLISHED_AGE_DAYS = 999.0

    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        if listing.published_at is None:
            age_days = self.UNPUBLISHED_AGE_DAYS
        else:
            elapsed = as_utc(now) - as_utc(listing.published_at)
            # Future publish dates count as brand new
            age_days = max(0.0, elapsed.total_seconds() / 86400)

        return max(0.0, 100.0 - age_days * self.POINTS_PER_DAY), "recency"


class RelevanceScoring(ScoringStrategy):
    """Case-insensitive substring match on title, description and tags."""

    NEUTRAL = 50.0
    TITLE_POINTS = 50.0
    DESCRIPTION_POINTS = 30.0
    TAG_POINTS = 20.0

    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        if not query:
            return self.NEUTRAL, "relevance"

        needle = query.lower()
        score = 0.0
        if needle in listing.title.lower():
            score += self.TITLE_POINTS
        if needle in listing.description.lower():
            score += self.DESCRIPTION_POINTS
        if any(needle in tag.lower() for tag in listing.tags):
            score += self.TAG_POINTS
        return score, "relevance"


class EngagementScoring(ScoringStrategy):
    """Saturating combination of views, favorites and contacts."""

    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        raw = listing.views * 0.1 + listing.favorites * 2 + listing.contacts * 5
        return min(100.0, raw), "engagement"


class LocationScoring(ScoringStrategy):
    """Proximity to the user: 1 point lost per 10 km."""

    NEUTRAL = 50.0

    def calculate(
        self,
        listing: Listing,
        query: Optional[str],
        user_location: Optional[GeoPoint],
        now: datetime,
    ) -> Tuple[float, str]:
        listing_point = listing.location.coordinates
        if user_location is None or listing_point is None:
            return self.NEUTRAL, "location"

        distance = haversine_km(
            user_location.lat, user_location.lng, listing_point.lat, listing_point.lng
        )
        return max(0.0, 100.0 - distance / 10), "location"


# =============================================================================
# Score Calculator
# =============================================================================


class ScoreCalculator:
    """
    Weighted sum of the sub-scores, multiplied by the listing's position boost.
    Pure: no randomness, and time only enters through `now`.
    """

    def __init__(self, scoring_strategies: Optional[List[ScoringStrategy]] = None):
        """
        Initialize calculator with scoring strategies.

        Args:
            scoring_strategies: List of strategies to apply (default: all five)
        """
        if scoring_strategies is None:
            scoring_strategies = [
                PlanScoring(),
                RecencyScoring(),
                RelevanceScoring(),
                EngagementScoring(),
                LocationScoring(),
            ]
        self._strategies = scoring_strategies

    def score_breakdown(
        self,
        listing: Listing,
        config: Optional[AlgorithmConfig] = None,
        query: Optional[str] = None,
        user_location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, float]:
        """Return every sub-score plus the boost and final score."""
        config = config or DEFAULT_ALGORITHM_CONFIG
        now = now or datetime.now(timezone.utc)

        breakdown: Dict[str, float] = {}
        weighted = 0.0
        for strategy in self._strategies:
            value, name = strategy.calculate(listing, query, user_location, now)
            breakdown[name] = value
            weighted += value * config.weights.get(name)

        settings = listing.display_settings
        boost = (settings.priority if settings is not None else 0.0) or 1.0

        breakdown["weighted"] = weighted
        breakdown["position_boost"] = boost
        breakdown["final"] = weighted * boost
        return breakdown

    def score(
        self,
        listing: Listing,
        config: Optional[AlgorithmConfig] = None,
        query: Optional[str] = None,
        user_location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> float:
        """Compute the final display score of a listing."""
        breakdown = self.score_breakdown(listing, config, query, user_location, now)
        return breakdown["final"]


_default_calculator = ScoreCalculator()


def compute_score(
    listing: Listing,
    config: Optional[AlgorithmConfig] = None,
    query: Optional[str] = None,
    user_location: Optional[GeoPoint] = None,
    now: Optional[datetime] = None,
) -> float:
    """Score a listing with the default five-factor calculator."""
    return _default_calculator.score(listing, config, query, user_location, now)


# =============================================================================
# Probabilistic Gate
# =============================================================================


def passes_display_gate(listing: Listing, rng: Optional[RandomSource] = None) -> bool:
    """
    Draw once and admit the listing with its tier's display probability.
    Every call draws afresh; nothing is memoized.
    """
    source = rng if rng is not None else random
    probability = get_plan_tier(listing.plan_type).display_probability
    return source.random() < probability
