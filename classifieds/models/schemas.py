"""
Domain models using Pydantic.
All data structures for the classifieds ranking engine.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Enumerations
# =============================================================================


class PlanType(str, Enum):
    """Paid plan tiers, ordered low -> high visibility."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    FEATURED = "featured"
    ENTERPRISE = "enterprise"


class ListingStatus(str, Enum):
    """Listing lifecycle status."""

    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"
    SOLD = "sold"
    REJECTED = "rejected"


class Condition(str, Enum):
    """Item condition."""

    NEW = "new"
    LIKE_NEW = "like_new"
    GOOD = "good"
    FAIR = "fair"
    PARTS = "parts"


class SortBy(str, Enum):
    """Search result ordering modes."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"


# Tier groups hold plain values: enum members hash by name, not by value
PREMIUM_OR_ABOVE = frozenset(
    t.value for t in (PlanType.PREMIUM, PlanType.FEATURED, PlanType.ENTERPRISE)
)
FEATURED_OR_ABOVE = frozenset(t.value for t in (PlanType.FEATURED, PlanType.ENTERPRISE))
REGULAR_TIERS = frozenset(t.value for t in (PlanType.FREE, PlanType.BASIC))


# =============================================================================
# Plan Tiers
# =============================================================================


class PlanTier(BaseModel):
    """Static visibility constants of a plan tier."""

    model_config = ConfigDict(frozen=True)

    type: PlanType = Field(..., description="Plan tier")
    name: str = Field(..., description="Display name")
    priority_score: float = Field(..., ge=0, le=100, description="Plan score (0-100)")
    display_probability: float = Field(
        ..., ge=0, le=1, description="Chance of passing the display gate"
    )
    position_boost: float = Field(..., gt=0, description="Score multiplier")


class GeoPoint(BaseModel):
    """Latitude/longitude pair in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# =============================================================================
# Listing (read-only to the engine)
# =============================================================================


class ListingLocation(BaseModel):
    """Structured location of a listing."""

    country: str = Field(default="BR")
    state: str = Field(default="")
    city: str = Field(default="")
    neighborhood: Optional[str] = None
    zip_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[GeoPoint]:
        """Usable coordinates, or None when missing or out of range."""
        if self.latitude is None or self.longitude is None:
            return None
        if not (-90 <= self.latitude <= 90 and -180 <= self.longitude <= 180):
            return None
        return GeoPoint(lat=self.latitude, lng=self.longitude)


class Badge(BaseModel):
    """Visual badge shown on a listing card."""

    type: str = Field(..., description="featured, urgent, verified, top or new")
    label: str
    color: str = Field(default="#6b7280")


class DisplaySettings(BaseModel):
    """
    Display block denormalized from the plan tier at publish time.
    The engine only reads `priority`, the position-boost multiplier.
    """

    priority: float = Field(default=1.0, ge=0, description="Position-boost multiplier")
    display_probability: float = Field(default=0.4, ge=0, le=1)
    badges: List[Badge] = Field(default_factory=list)

    @classmethod
    def for_tier(cls, tier: PlanTier) -> "DisplaySettings":
        """Derive the display block a listing receives when published on `tier`."""
        badges: List[Badge] = []
        if tier.type.value in FEATURED_OR_ABOVE:
            badges.append(Badge(type="featured", label="Destaque", color="#f59e0b"))
        if tier.type == PlanType.ENTERPRISE:
            badges.append(Badge(type="verified", label="Verificado", color="#10b981"))
        return cls(
            priority=tier.position_boost,
            display_probability=tier.display_probability,
            badges=badges,
        )


class Listing(BaseModel):
    """
    A single classified advertisement.
    Supplied by the caller as part of a snapshot; never mutated by the engine.
    """

    id: str = Field(..., description="Unique listing identifier")
    user_id: str = Field(..., description="Owning user")
    plan_id: str = Field(default="plan_free")
    # Plain string so unknown tiers degrade to the lowest tier instead of failing
    plan_type: str = Field(default=PlanType.FREE.value, description="Plan tier")

    title: str
    slug: str = Field(default="")
    description: str = Field(default="")
    price: float = Field(default=0.0, ge=0)
    currency: str = Field(default="BRL")
    negotiable: bool = False

    category_id: str
    subcategory_id: Optional[str] = None
    condition: Condition = Condition.GOOD

    location: ListingLocation = Field(default_factory=ListingLocation)

    status: ListingStatus = ListingStatus.DRAFT
    created_at: datetime
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    views: int = Field(default=0, ge=0)
    favorites: int = Field(default=0, ge=0)
    contacts: int = Field(default=0, ge=0)

    display_settings: Optional[DisplaySettings] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("plan_type", mode="before")
    @classmethod
    def _plain_plan_type(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @property
    def is_active(self) -> bool:
        return self.status == ListingStatus.ACTIVE

    @property
    def is_premium_or_above(self) -> bool:
        return self.plan_type in PREMIUM_OR_ABOVE

    @property
    def is_featured_or_above(self) -> bool:
        return self.plan_type in FEATURED_OR_ABOVE

    @property
    def is_regular(self) -> bool:
        return self.plan_type in REGULAR_TIERS


class ScoredListing(BaseModel):
    """Internal model for a listing with its computed score."""

    listing: Listing
    score: float


# =============================================================================
# Algorithm Configuration
# =============================================================================


class ScoringWeights(BaseModel):
    """Weights of the five sub-scores. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    plan_priority: float = Field(default=0.40, ge=0, le=1)
    recency: float = Field(default=0.25, ge=0, le=1)
    relevance: float = Field(default=0.20, ge=0, le=1)
    engagement: float = Field(default=0.10, ge=0, le=1)
    location: float = Field(default=0.05, ge=0, le=1)

    @model_validator(mode="after")
    def _check_sum(self) -> "ScoringWeights":
        total = (
            self.plan_priority
            + self.recency
            + self.relevance
            + self.engagement
            + self.location
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.6f}")
        return self

    def get(self, name: str, default: float = 0.0) -> float:
        return getattr(self, name, default)


class HomepageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    featured_slots: int = Field(default=4, ge=0)
    premium_slots: int = Field(default=8, ge=0)
    regular_slots: int = Field(default=12, ge=0)
    rotation_interval: int = Field(default=30, gt=0, description="Seconds")


class SearchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    boost_premium_positions: int = Field(default=3, ge=0)
    mix_ratio: float = Field(default=0.3, ge=0, le=1)


class CategoryConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    highlighted_ads: int = Field(default=4, ge=0)
    standard_ads_per_page: int = Field(default=20, ge=1)


class AlgorithmConfig(BaseModel):
    """
    Tunable constants of the ranking engine.
    Immutable; pass a new instance to override per call.
    """

    model_config = ConfigDict(frozen=True)

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    homepage: HomepageConfig = Field(default_factory=HomepageConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    category: CategoryConfig = Field(default_factory=CategoryConfig)


DEFAULT_ALGORITHM_CONFIG = AlgorithmConfig()


# =============================================================================
# Search Parameters & Results
# =============================================================================


class LocationFilter(BaseModel):
    state: Optional[str] = None
    city: Optional[str] = None


class PriceRange(BaseModel):
    min: Optional[float] = Field(default=None, ge=0)
    max: Optional[float] = Field(default=None, ge=0)


class SearchParams(BaseModel):
    """Per-request query descriptor."""

    query: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    location: Optional[LocationFilter] = None
    price_range: Optional[PriceRange] = None
    condition: List[Condition] = Field(default_factory=list)
    sort_by: SortBy = SortBy.RELEVANCE
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)
    user_location: Optional[GeoPoint] = Field(
        default=None,
        description="Searcher coordinates, used for location scoring only",
    )


class DisplayMetrics(BaseModel):
    premium_shown: int = 0
    regular_shown: int = 0
    average_score: float = 0.0


class DisplayResult(BaseModel):
    """One page of ranked listings."""

    items: List[Listing] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 20
    has_more: bool = False
    metrics: DisplayMetrics = Field(default_factory=DisplayMetrics)


class HomepageSections(BaseModel):
    featured: List[Listing] = Field(default_factory=list)
    premium: List[Listing] = Field(default_factory=list)
    regular: List[Listing] = Field(default_factory=list)


class CategorySections(BaseModel):
    highlighted: List[Listing] = Field(default_factory=list)
    standard: DisplayResult = Field(default_factory=DisplayResult)


# =============================================================================
# API Models (External)
# =============================================================================


class HomepageResponse(BaseModel):
    """Homepage endpoint response."""

    sections: HomepageSections
    featured_rotation_start: Optional[int] = Field(
        default=None,
        description="Start index of the featured window for the current "
        "rotation bucket; null when no featured listings exist",
    )


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")
