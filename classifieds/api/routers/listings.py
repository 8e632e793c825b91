"""
Listings API router.
Homepage, search, category and detail endpoints over the listing snapshot.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from classifieds.api.dependencies import get_listing_service
from classifieds.config import get_settings
from classifieds.core.exceptions import ValidationError
from classifieds.models.schemas import (
    CategorySections,
    Condition,
    DisplayResult,
    ErrorResponse,
    GeoPoint,
    HomepageResponse,
    Listing,
    LocationFilter,
    PlanTier,
    PriceRange,
    SearchParams,
    SortBy,
)
from classifieds.services.listings import ListingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["listings"])

# Gated and interleaved views differ between calls; never cache them
NO_STORE = "no-store"


@router.get(
    "/plans",
    response_model=List[PlanTier],
    summary="List Plan Tiers",
)
async def list_plans(
    listing_service: ListingService = Depends(get_listing_service),
) -> List[PlanTier]:
    """Plan tiers ordered from lowest to highest visibility."""
    return await listing_service.get_plans()


@router.get(
    "/listings/homepage",
    response_model=HomepageResponse,
    summary="Get Homepage Sections",
    description="""
    Featured (featured/enterprise), premium and regular (basic/free) sections.

    Regular listings pass a probabilistic display gate, so the regular
    section varies between calls. `featured_rotation_start` is the start
    index of the featured window for the current rotation bucket.
    """,
)
async def get_homepage(
    response: Response,
    listing_service: ListingService = Depends(get_listing_service),
) -> HomepageResponse:
    homepage = await listing_service.get_homepage()
    response.headers["Cache-Control"] = NO_STORE
    return homepage


@router.get(
    "/listings/search",
    response_model=DisplayResult,
    summary="Search Listings",
    description="""
    Filter and rank active listings.

    The default `relevance` sort reserves the first positions for premium
    listings and interleaves the rest; price and date sorts ignore scores.
    """,
    responses={
        200: {"description": "Page of ranked listings"},
        400: {"model": ErrorResponse, "description": "Invalid price range"},
    },
)
async def search_listings(
    response: Response,
    q: Optional[str] = Query(default=None, description="Free-text query"),
    category_id: Optional[str] = Query(default=None),
    subcategory_id: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None, description="State filter"),
    city: Optional[str] = Query(default=None, description="City filter"),
    price_min: Optional[float] = Query(default=None, ge=0),
    price_max: Optional[float] = Query(default=None, ge=0),
    condition: List[Condition] = Query(default=[]),
    sort_by: SortBy = Query(default=SortBy.RELEVANCE),
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    listing_service: ListingService = Depends(get_listing_service),
) -> DisplayResult:
    settings = get_settings()

    if price_min is not None and price_max is not None and price_min > price_max:
        raise ValidationError(
            "price_min must not exceed price_max",
            details={"price_min": price_min, "price_max": price_max},
        )

    # Enforce page size from settings
    effective_page_size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)

    params = SearchParams(
        query=q,
        category_id=category_id,
        subcategory_id=subcategory_id,
        location=LocationFilter(state=state, city=city) if state or city else None,
        price_range=(
            PriceRange(min=price_min, max=price_max)
            if price_min is not None or price_max is not None
            else None
        ),
        condition=condition,
        sort_by=sort_by,
        page=page,
        page_size=effective_page_size,
        user_location=(
            GeoPoint(lat=lat, lng=lng) if lat is not None and lng is not None else None
        ),
    )

    result = await listing_service.search(params)
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.get(
    "/listings/{listing_id}",
    response_model=Listing,
    summary="Get Listing",
    responses={404: {"model": ErrorResponse, "description": "Listing not found"}},
)
async def get_listing(
    listing_id: str,
    listing_service: ListingService = Depends(get_listing_service),
) -> Listing:
    return await listing_service.get_listing(listing_id)


@router.get(
    "/listings/{listing_id}/similar",
    response_model=List[Listing],
    summary="Get Similar Listings",
    responses={404: {"model": ErrorResponse, "description": "Listing not found"}},
)
async def get_similar_listings(
    listing_id: str,
    limit: int = Query(default=6, ge=1, le=24),
    listing_service: ListingService = Depends(get_listing_service),
) -> List[Listing]:
    """Active listings from the same category, same subcategory ranked first."""
    return await listing_service.get_similar(listing_id, limit=limit)


@router.get(
    "/categories/{category_id}/listings",
    response_model=CategorySections,
    summary="Get Category Sections",
)
async def get_category_listings(
    response: Response,
    category_id: str,
    page: int = Query(default=1, ge=1),
    listing_service: ListingService = Depends(get_listing_service),
) -> CategorySections:
    """Highlighted featured listings plus a paginated standard section."""
    sections = await listing_service.get_category(category_id, page=page)
    response.headers["Cache-Control"] = NO_STORE
    return sections
