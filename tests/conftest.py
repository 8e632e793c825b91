"""
Pytest configuration and fixtures.
"""
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from classifieds.api.dependencies import get_listing_service
from classifieds.main import app
from classifieds.models.schemas import AlgorithmConfig, Listing, ListingStatus
from classifieds.repositories.memory import (
    InMemoryListingRepository,
    InMemoryPlanRepository,
)
from classifieds.services.listings import ListingService
from classifieds.services.placement import PlacementEngine

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_listing(listing_id: str, plan_type: str = "free", **overrides) -> Listing:
    """Active, freshly published listing with neutral engagement."""
    fields = dict(
        id=listing_id,
        user_id="u1",
        plan_type=plan_type,
        title=f"Listing {listing_id}",
        description="",
        category_id="general",
        price=100.0,
        status=ListingStatus.ACTIVE,
        created_at=NOW - timedelta(days=1),
        published_at=NOW,
    )
    fields.update(overrides)
    return Listing(**fields)


class ScriptedRandom:
    """Random source returning scripted draws, then a constant."""

    def __init__(self, draws: Optional[List[float]] = None, default: float = 0.0) -> None:
        self._draws = list(draws or [])
        self._default = default
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self._draws:
            return self._draws.pop(0)
        return self._default


@pytest.fixture
def now():
    """Fixed reference time for recency scoring."""
    return NOW


@pytest.fixture
def make_listing():
    """Factory fixture for listings."""
    return build_listing


@pytest.fixture
def scripted_rng():
    """Factory fixture for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def default_config():
    return AlgorithmConfig()


@pytest.fixture
def listing_service():
    """Service over the mock snapshot with a seeded placement engine."""
    return ListingService(
        listing_repo=InMemoryListingRepository(),
        plan_repo=InMemoryPlanRepository(),
        placement_engine=PlacementEngine(rng=random.Random(1234)),
        config=AlgorithmConfig(),
    )


@pytest.fixture
def test_client(listing_service):
    """
    TestClient fixture with dependency overrides.
    Uses the in-memory mock snapshot for isolation.
    """
    app.dependency_overrides[get_listing_service] = lambda: listing_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
