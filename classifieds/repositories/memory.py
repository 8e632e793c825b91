"""
In-memory repository implementations.
Used for prototyping and testing.
Production would replace these with database-backed implementations.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from classifieds.models.schemas import (
    Condition,
    DisplaySettings,
    Listing,
    ListingLocation,
    ListingStatus,
    PlanTier,
    PlanType,
)
from classifieds.services.ranking import PLAN_TIERS, get_plan_tier


def _published_listing(
    listing_id: str,
    plan: PlanType,
    title: str,
    category_id: str,
    price: float,
    published_days_ago: float,
    now: datetime,
    **fields,
) -> Listing:
    """Build an active listing as it looks right after publication."""
    tier = get_plan_tier(plan.value)
    published_at = now - timedelta(days=published_days_ago)
    return Listing(
        id=listing_id,
        user_id=fields.pop("user_id", "u1"),
        plan_id=f"plan_{plan.value}",
        plan_type=plan.value,
        title=title,
        slug=listing_id,
        category_id=category_id,
        price=price,
        status=fields.pop("status", ListingStatus.ACTIVE),
        created_at=published_at - timedelta(hours=2),
        updated_at=published_at,
        published_at=published_at,
        expires_at=published_at + timedelta(days=60),
        display_settings=DisplaySettings.for_tier(tier),
        **fields,
    )


class InMemoryListingRepository:
    """
    In-memory implementation of ListingRepository.
    Holds a fixed snapshot of mock listings.
    """

    def __init__(self, listings: Optional[List[Listing]] = None) -> None:
        self._listings: Dict[str, Listing] = {}
        if listings is None:
            listings = self._mock_listings()
        for listing in listings:
            self._listings[listing.id] = listing

    @staticmethod
    def _mock_listings() -> List[Listing]:
        """Mock marketplace snapshot covering every tier and status."""
        now = datetime.now(timezone.utc)
        sao_paulo = ListingLocation(
            country="BR", state="SP", city="São Paulo",
            latitude=-23.5505, longitude=-46.6333,
        )
        rio = ListingLocation(
            country="BR", state="RJ", city="Rio de Janeiro",
            latitude=-22.9068, longitude=-43.1729,
        )
        curitiba = ListingLocation(
            country="BR", state="PR", city="Curitiba",
            latitude=-25.4284, longitude=-49.2733,
        )

        return [
            _published_listing(
                "ad-001", PlanType.ENTERPRISE, "Honda Civic 2022 Touring", "vehicles",
                price=145000, published_days_ago=1, now=now, user_id="u-dealer",
                subcategory_id="cars", condition=Condition.LIKE_NEW, location=sao_paulo,
                description="Único dono, revisões na concessionária.",
                tags=["honda", "sedan", "automático"], views=820, favorites=31, contacts=12,
            ),
            _published_listing(
                "ad-002", PlanType.FEATURED, "Apartamento 3 quartos Copacabana", "real-estate",
                price=1250000, published_days_ago=3, now=now, user_id="u-realty",
                subcategory_id="apartments", location=rio,
                description="Vista para o mar, 2 vagas.",
                tags=["apartamento", "praia"], views=1500, favorites=64, contacts=20,
            ),
            _published_listing(
                "ad-003", PlanType.FEATURED, "Toyota Corolla 2020 XEi", "vehicles",
                price=112000, published_days_ago=6, now=now,
                subcategory_id="cars", condition=Condition.GOOD, location=curitiba,
                description="Completo, pneus novos.", tags=["toyota", "sedan"],
                views=430, favorites=12, contacts=4,
            ),
            _published_listing(
                "ad-004", PlanType.PREMIUM, "iPhone 14 Pro 256GB", "electronics",
                price=5200, published_days_ago=2, now=now,
                subcategory_id="phones", condition=Condition.LIKE_NEW, location=sao_paulo,
                description="Bateria 92%, com nota fiscal.", tags=["apple", "iphone"],
                views=300, favorites=18, contacts=7,
            ),
            _published_listing(
                "ad-005", PlanType.PREMIUM, "Sofá retrátil 3 lugares", "home",
                price=1800, published_days_ago=10, now=now,
                subcategory_id="furniture", condition=Condition.GOOD, location=rio,
                description="Tecido suede, pouco uso.", tags=["sofá", "sala"],
                views=95, favorites=5, contacts=1,
            ),
            _published_listing(
                "ad-006", PlanType.BASIC, "Bicicleta aro 29 Shimano", "sports",
                price=1400, published_days_ago=4, now=now,
                subcategory_id="bikes", condition=Condition.GOOD, location=curitiba,
                description="Quadro alumínio, 21 marchas.", tags=["bike", "mtb"],
                views=120, favorites=6, contacts=2,
            ),
            _published_listing(
                "ad-007", PlanType.BASIC, "Samsung Galaxy S22", "electronics",
                price=2600, published_days_ago=8, now=now,
                subcategory_id="phones", condition=Condition.GOOD, location=sao_paulo,
                description="Tela sem riscos.", tags=["samsung", "android"],
                views=210, favorites=9, contacts=3,
            ),
            _published_listing(
                "ad-008", PlanType.FREE, "Mesa de jantar 6 cadeiras", "home",
                price=900, published_days_ago=15, now=now,
                subcategory_id="furniture", condition=Condition.FAIR, location=rio,
                description="Madeira maciça, precisa de verniz.", tags=["mesa", "madeira"],
                views=40, favorites=1,
            ),
            _published_listing(
                "ad-009", PlanType.FREE, "Fiat Uno 2012 para peças", "vehicles",
                price=6500, published_days_ago=30, now=now,
                subcategory_id="cars", condition=Condition.PARTS, location=curitiba,
                description="Motor funcionando, lataria ruim.", tags=["fiat", "peças"],
                views=75, favorites=2, contacts=1,
            ),
            _published_listing(
                "ad-010", PlanType.FREE, "Notebook Dell Inspiron i5", "electronics",
                price=2100, published_days_ago=20, now=now,
                subcategory_id="computers", condition=Condition.GOOD, location=sao_paulo,
                description="8GB RAM, SSD 256GB.", tags=["dell", "notebook"],
                views=60, favorites=3, contacts=1,
            ),
            _published_listing(
                "ad-011", PlanType.PREMIUM, "Casa 4 quartos Batel", "real-estate",
                price=2300000, published_days_ago=5, now=now, subcategory_id="houses",
                location=curitiba, status=ListingStatus.SOLD,
                description="Vendida.", tags=["casa"],
            ),
            _published_listing(
                "ad-012", PlanType.FEATURED, "PlayStation 5 + 2 controles", "electronics",
                price=3900, published_days_ago=0.5, now=now, subcategory_id="games",
                location=rio, status=ListingStatus.PAUSED,
                description="Pausado pelo vendedor.", tags=["ps5", "console"],
            ),
        ]

    async def get_snapshot(self) -> List[Listing]:
        """Fetch the current listing collection."""
        return list(self._listings.values())

    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        """Fetch a single listing by identifier."""
        return self._listings.get(listing_id)


class InMemoryPlanRepository:
    """In-memory implementation of PlanRepository backed by the tier table."""

    def __init__(self, plans: Optional[List[PlanTier]] = None) -> None:
        self._plans = plans if plans is not None else list(PLAN_TIERS.values())

    async def get_plans(self) -> List[PlanTier]:
        """Return all plan tiers ordered low -> high visibility."""
        return sorted(self._plans, key=lambda plan: plan.priority_score)
