"""
Placement assemblers.
Turn a listing snapshot into homepage sections, search pages and category
pages, balancing paid visibility against relevance.
"""
import logging
import random
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from classifieds.models.schemas import (
    DEFAULT_ALGORITHM_CONFIG,
    AlgorithmConfig,
    CategorySections,
    DisplayMetrics,
    DisplayResult,
    GeoPoint,
    HomepageSections,
    Listing,
    PlanType,
    ScoredListing,
    SearchParams,
    SortBy,
)
from classifieds.services.ranking import (
    RandomSource,
    ScoreCalculator,
    as_utc,
    passes_display_gate,
)

logger = logging.getLogger(__name__)

SIMILAR_SUBCATEGORY_BONUS = 20.0


class PlacementEngine:
    """
    Assembles ranked views over a caller-supplied listing snapshot.
    Holds no per-request state; the random source is injected for testability.
    """

    def __init__(
        self,
        calculator: Optional[ScoreCalculator] = None,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self._calculator = calculator or ScoreCalculator()
        self._rng: RandomSource = rng if rng is not None else random

    # -------------------------------------------------------------------------
    # Homepage
    # -------------------------------------------------------------------------

    def homepage(
        self,
        listings: Sequence[Listing],
        config: Optional[AlgorithmConfig] = None,
        now: Optional[datetime] = None,
    ) -> HomepageSections:
        """Build the featured, premium and regular homepage sections."""
        config = config or DEFAULT_ALGORITHM_CONFIG
        now = now or datetime.now(timezone.utc)
        active = [listing for listing in listings if listing.is_active]

        featured = [l for l in active if l.is_featured_or_above]
        premium = [l for l in active if l.plan_type == PlanType.PREMIUM.value]
        regular = [
            l for l in active if l.is_regular and passes_display_gate(l, self._rng)
        ]

        sections = HomepageSections(
            featured=self._top(featured, config, config.homepage.featured_slots, now),
            premium=self._top(premium, config, config.homepage.premium_slots, now),
            regular=self._top(regular, config, config.homepage.regular_slots, now),
        )

        logger.debug(
            f"Homepage: {len(listings)} listings -> {len(active)} active -> "
            f"featured={len(sections.featured)}, premium={len(sections.premium)}, "
            f"regular={len(sections.regular)}"
        )
        return sections

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(
        self,
        listings: Sequence[Listing],
        params: SearchParams,
        config: Optional[AlgorithmConfig] = None,
        now: Optional[datetime] = None,
    ) -> DisplayResult:
        """
        Filter, gate, score, order and paginate listings.

        Args:
            listings: Full listing snapshot
            params: Query, filters, sort mode and page
            config: Algorithm configuration (default when omitted)
            now: Reference time for recency scoring

        Returns:
            DisplayResult for the requested page
        """
        config = config or DEFAULT_ALGORITHM_CONFIG
        now = now or datetime.now(timezone.utc)

        # Step 1-3: Filter candidates
        filtered = self._filter(listings, params)

        # Step 4: Gate only the tiers below premium
        admitted = [
            listing
            for listing in filtered
            if listing.is_premium_or_above or passes_display_gate(listing, self._rng)
        ]

        # Step 5: Score with the query passed through for relevance
        scored = self._score(
            admitted, config, query=params.query, user_location=params.user_location, now=now
        )

        # Step 6: Order
        ordered = self._order(scored, params.sort_by, config)

        logger.debug(
            f"Search: {len(listings)} listings -> {len(filtered)} filtered -> "
            f"{len(admitted)} admitted, sort={params.sort_by.value}"
        )

        # Step 7: Paginate
        return self._paginate(ordered, params.page, params.page_size)

    def _filter(
        self, listings: Iterable[Listing], params: SearchParams
    ) -> List[Listing]:
        """Apply status, text and structured filters in order."""
        needle = params.query.lower() if params.query else None
        location = params.location
        price = params.price_range
        conditions = set(params.condition)

        filtered = []
        for listing in listings:
            if not listing.is_active:
                continue

            if needle and not self._matches_query(listing, needle):
                continue

            if params.category_id and listing.category_id != params.category_id:
                continue

            if (
                params.subcategory_id
                and listing.subcategory_id != params.subcategory_id
            ):
                continue

            if location is not None:
                if location.state and listing.location.state != location.state:
                    continue
                if location.city and listing.location.city != location.city:
                    continue

            if price is not None:
                if price.min is not None and listing.price < price.min:
                    continue
                if price.max is not None and listing.price > price.max:
                    continue

            if conditions and listing.condition not in conditions:
                continue

            filtered.append(listing)

        return filtered

    @staticmethod
    def _matches_query(listing: Listing, needle: str) -> bool:
        return (
            needle in listing.title.lower()
            or needle in listing.description.lower()
            or any(needle in tag.lower() for tag in listing.tags)
        )

    def _order(
        self,
        scored: List[ScoredListing],
        sort_by: SortBy,
        config: AlgorithmConfig,
    ) -> List[ScoredListing]:
        if sort_by == SortBy.PRICE_ASC:
            return sorted(scored, key=lambda s: s.listing.price)
        if sort_by == SortBy.PRICE_DESC:
            return sorted(scored, key=lambda s: s.listing.price, reverse=True)
        if sort_by == SortBy.DATE_DESC:
            return sorted(scored, key=self._listing_date, reverse=True)
        if sort_by == SortBy.DATE_ASC:
            return sorted(scored, key=self._listing_date)
        return self._mix_premium(scored, config)

    @staticmethod
    def _listing_date(item: ScoredListing) -> datetime:
        listing = item.listing
        return as_utc(listing.published_at or listing.created_at)

    def _mix_premium(
        self, scored: List[ScoredListing], config: AlgorithmConfig
    ) -> List[ScoredListing]:
        """
        Reserve the head for the best premium listings, then interleave the
        rest: each step takes a premium listing with probability `mix_ratio`.
        Once one pool runs dry the other is appended in score order.
        """
        premium = self._by_score([s for s in scored if s.listing.is_premium_or_above])
        others = self._by_score([s for s in scored if not s.listing.is_premium_or_above])

        boosted = config.search.boost_premium_positions
        mix_ratio = config.search.mix_ratio
        mixed = premium[:boosted]
        remaining = premium[boosted:]

        p = o = 0
        while p < len(remaining) or o < len(others):
            if p < len(remaining) and self._rng.random() < mix_ratio:
                mixed.append(remaining[p])
                p += 1
            elif o < len(others):
                mixed.append(others[o])
                o += 1
            else:
                mixed.append(remaining[p])
                p += 1

        return mixed

    @staticmethod
    def _paginate(
        ordered: List[ScoredListing], page: int, page_size: int
    ) -> DisplayResult:
        start = (page - 1) * page_size
        page_items = ordered[start : start + page_size]

        premium_shown = sum(1 for s in page_items if s.listing.is_premium_or_above)
        average = (
            sum(s.score for s in page_items) / len(page_items) if page_items else 0.0
        )

        return DisplayResult(
            items=[s.listing for s in page_items],
            total_count=len(ordered),
            page=page,
            page_size=page_size,
            has_more=start + page_size < len(ordered),
            metrics=DisplayMetrics(
                premium_shown=premium_shown,
                regular_shown=len(page_items) - premium_shown,
                average_score=average,
            ),
        )

    # -------------------------------------------------------------------------
    # Category
    # -------------------------------------------------------------------------

    def category(
        self,
        listings: Sequence[Listing],
        category_id: str,
        config: Optional[AlgorithmConfig] = None,
        page: int = 1,
        now: Optional[datetime] = None,
    ) -> CategorySections:
        """Highlight the top featured listings, paginate everything else."""
        config = config or DEFAULT_ALGORITHM_CONFIG
        now = now or datetime.now(timezone.utc)
        in_category = [
            l for l in listings if l.is_active and l.category_id == category_id
        ]

        highlighted = self._top(
            [l for l in in_category if l.is_featured_or_above],
            config,
            config.category.highlighted_ads,
            now,
        )
        highlighted_ids = {listing.id for listing in highlighted}
        standard_pool = [l for l in in_category if l.id not in highlighted_ids]

        standard = self.search(
            standard_pool,
            SearchParams(page=page, page_size=config.category.standard_ads_per_page),
            config,
            now=now,
        )

        logger.debug(
            f"Category {category_id}: {len(in_category)} active -> "
            f"highlighted={len(highlighted)}, standard_total={standard.total_count}"
        )
        return CategorySections(highlighted=highlighted, standard=standard)

    # -------------------------------------------------------------------------
    # Similar listings
    # -------------------------------------------------------------------------

    def similar(
        self,
        listings: Sequence[Listing],
        current: Listing,
        limit: int = 6,
        config: Optional[AlgorithmConfig] = None,
        now: Optional[datetime] = None,
    ) -> List[Listing]:
        """Related listings from the same category, same subcategory first."""
        config = config or DEFAULT_ALGORITHM_CONFIG
        now = now or datetime.now(timezone.utc)
        candidates = [
            l
            for l in listings
            if l.is_active and l.id != current.id and l.category_id == current.category_id
        ]

        scored = []
        for listing in candidates:
            score = self._calculator.score(listing, config, now=now)
            # Two listings without a subcategory count as the same subcategory
            if listing.subcategory_id == current.subcategory_id:
                score += SIMILAR_SUBCATEGORY_BONUS
            scored.append(ScoredListing(listing=listing, score=score))

        return [s.listing for s in self._by_score(scored)[:limit]]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _score(
        self,
        listings: Iterable[Listing],
        config: AlgorithmConfig,
        query: Optional[str] = None,
        user_location: Optional[GeoPoint] = None,
        now: Optional[datetime] = None,
    ) -> List[ScoredListing]:
        return [
            ScoredListing(
                listing=listing,
                score=self._calculator.score(listing, config, query, user_location, now),
            )
            for listing in listings
        ]

    @staticmethod
    def _by_score(scored: List[ScoredListing]) -> List[ScoredListing]:
        # sorted() is stable, so ties keep snapshot order
        return sorted(scored, key=lambda s: s.score, reverse=True)

    def _top(
        self,
        listings: Iterable[Listing],
        config: AlgorithmConfig,
        slots: int,
        now: Optional[datetime],
    ) -> List[Listing]:
        ranked = self._by_score(self._score(listings, config, now=now))
        return [s.listing for s in ranked[:slots]]


# =============================================================================
# Functional entry points
# =============================================================================


def get_homepage_sections(
    listings: Sequence[Listing],
    config: Optional[AlgorithmConfig] = None,
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
) -> HomepageSections:
    return PlacementEngine(rng=rng).homepage(listings, config, now=now)


def search_listings(
    listings: Sequence[Listing],
    params: SearchParams,
    config: Optional[AlgorithmConfig] = None,
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
) -> DisplayResult:
    return PlacementEngine(rng=rng).search(listings, params, config, now=now)


def get_category_sections(
    listings: Sequence[Listing],
    category_id: str,
    config: Optional[AlgorithmConfig] = None,
    page: int = 1,
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
) -> CategorySections:
    return PlacementEngine(rng=rng).category(
        listings, category_id, config, page=page, now=now
    )


def get_similar_listings(
    listings: Sequence[Listing],
    current: Listing,
    limit: int = 6,
    config: Optional[AlgorithmConfig] = None,
    now: Optional[datetime] = None,
) -> List[Listing]:
    return PlacementEngine().similar(listings, current, limit, config, now=now)
