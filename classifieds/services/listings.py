"""
Listing service - orchestrates snapshot fetching and placement.
Fetches the listing snapshot from the repository, runs the placement engine
and records telemetry. The engine itself stays synchronous and stateless.
"""
import logging
import time
from typing import List, Optional

from classifieds.core.exceptions import NotFoundError
from classifieds.core.telemetry import record_placement
from classifieds.models.interfaces import ListingRepository, PlanRepository
from classifieds.models.schemas import (
    AlgorithmConfig,
    CategorySections,
    DisplayResult,
    HomepageResponse,
    Listing,
    PlanTier,
    SearchParams,
)
from classifieds.services.placement import PlacementEngine
from classifieds.services.rotation import get_rotation_start

logger = logging.getLogger(__name__)


class ListingService:
    """
    Main listing service used by the API layer.

    Responsibilities:
    - Fetch the listing snapshot
    - Run the placement engine with the configured algorithm settings
    - Count premium vs. regular placements
    """

    def __init__(
            self,
            listing_repo: ListingRepository,
            plan_repo: PlanRepository,
            placement_engine: PlacementEngine,
            config: AlgorithmConfig,
    ) -> None:
        """
        Initialize listing service with dependencies.

        Args:
            listing_repo: Repository for the listing snapshot
            plan_repo: Repository for plan tier definitions
            placement_engine: Engine assembling ranked views
            config: Algorithm configuration applied to every call
        """
        self._listing_repo = listing_repo
        self._plan_repo = plan_repo
        self._engine = placement_engine
        self._config = config

    @property
    def config(self) -> AlgorithmConfig:
        return self._config

    async def get_homepage(self, now: Optional[float] = None) -> HomepageResponse:
        """Homepage sections plus the current featured rotation window start."""
        start_time = time.time()
        listings = await self._listing_repo.get_snapshot()

        sections = self._engine.homepage(listings, self._config)

        # Rotation is only defined over a non-empty featured pool
        eligible = sum(1 for l in listings if l.is_active and l.is_featured_or_above)
        rotation_start = None
        if eligible:
            rotation_start = get_rotation_start(
                eligible,
                self._config.homepage.featured_slots,
                self._config.homepage.rotation_interval,
                now=now,
            )

        premium = len(sections.featured) + len(sections.premium)
        record_placement("homepage", premium=premium, regular=len(sections.regular))

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Homepage served: featured={len(sections.featured)}, "
            f"premium={len(sections.premium)}, regular={len(sections.regular)}, "
            f"elapsed_ms={elapsed_ms:.2f}",
            extra={"view": "homepage"},
        )
        return HomepageResponse(sections=sections, featured_rotation_start=rotation_start)

    async def search(self, params: SearchParams) -> DisplayResult:
        """Run a search over the current snapshot."""
        listings = await self._listing_repo.get_snapshot()
        result = self._engine.search(listings, params, self._config)

        record_placement(
            "search",
            premium=result.metrics.premium_shown,
            regular=result.metrics.regular_shown,
        )
        logger.info(
            f"Search served: query={params.query!r}, total={result.total_count}, "
            f"page={result.page}, items={len(result.items)}",
            extra={"view": "search"},
        )
        return result

    async def get_category(self, category_id: str, page: int = 1) -> CategorySections:
        """Highlighted and paginated standard listings for one category."""
        listings = await self._listing_repo.get_snapshot()
        sections = self._engine.category(listings, category_id, self._config, page=page)

        record_placement(
            "category",
            premium=len(sections.highlighted) + sections.standard.metrics.premium_shown,
            regular=sections.standard.metrics.regular_shown,
        )
        logger.info(
            f"Category served: highlighted={len(sections.highlighted)}, "
            f"standard_total={sections.standard.total_count}, page={page}",
            extra={"view": "category", "category_id": category_id},
        )
        return sections

    async def get_listing(self, listing_id: str) -> Listing:
        """
        Fetch one listing.

        Raises:
            NotFoundError: If the listing does not exist
        """
        listing = await self._listing_repo.get_listing(listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)
        return listing

    async def get_similar(self, listing_id: str, limit: int = 6) -> List[Listing]:
        """Related listings for a listing detail page."""
        current = await self.get_listing(listing_id)
        listings = await self._listing_repo.get_snapshot()
        similar = self._engine.similar(listings, current, limit, self._config)

        logger.info(
            f"Similar listings served: items={len(similar)}",
            extra={"view": "similar", "listing_id": listing_id},
        )
        return similar

    async def get_plans(self) -> List[PlanTier]:
        return await self._plan_repo.get_plans()
