"""
Unit tests for the score calculator and display gate.
"""
from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from classifieds.models.schemas import (
    AlgorithmConfig,
    DisplaySettings,
    GeoPoint,
    ListingLocation,
    PlanType,
    ScoringWeights,
)
from classifieds.services.geo import haversine_km
from classifieds.services.ranking import (
    EngagementScoring,
    LocationScoring,
    RecencyScoring,
    RelevanceScoring,
    ScoreCalculator,
    compute_score,
    get_plan_tier,
    passes_display_gate,
)

TIER_ORDER = ["free", "basic", "premium", "featured", "enterprise"]


class TestComputeScore:
    def test_neutral_listing_exact_score(self, make_listing, now):
        """Plan 10*.4 + recency 100*.25 + relevance 50*.2 + 0 + location 50*.05."""
        listing = make_listing("a")
        assert compute_score(listing, now=now) == pytest.approx(41.5)

    def test_deterministic(self, make_listing, now):
        listing = make_listing("a", views=37, favorites=2)
        assert compute_score(listing, now=now) == compute_score(listing, now=now)

    def test_strictly_increasing_in_plan_tier(self, make_listing, now):
        scores = [
            compute_score(make_listing(tier, plan_type=tier), now=now)
            for tier in TIER_ORDER
        ]
        assert scores == sorted(scores)
        assert len(set(scores)) == len(scores)

    def test_unknown_tier_scores_like_free(self, make_listing, now):
        unknown = make_listing("x", plan_type="platinum")
        free = make_listing("y", plan_type="free")
        assert compute_score(unknown, now=now) == compute_score(free, now=now)

    def test_position_boost_multiplies(self, make_listing, now):
        boosted = make_listing("a", display_settings=DisplaySettings(priority=2.0))
        assert compute_score(boosted, now=now) == pytest.approx(83.0)

    def test_zero_priority_falls_back_to_one(self, make_listing, now):
        listing = make_listing("a", display_settings=DisplaySettings(priority=0))
        assert compute_score(listing, now=now) == pytest.approx(41.5)

    def test_display_settings_derived_from_tier(self, make_listing, now):
        tier = get_plan_tier(PlanType.ENTERPRISE.value)
        settings = DisplaySettings.for_tier(tier)
        assert settings.priority == 3.0
        assert {badge.type for badge in settings.badges} == {"featured", "verified"}

        listing = make_listing("a", plan_type="enterprise", display_settings=settings)
        base = make_listing("b", plan_type="enterprise")
        assert compute_score(listing, now=now) == pytest.approx(
            compute_score(base, now=now) * 3.0
        )

    def test_config_override(self, make_listing, now):
        config = AlgorithmConfig(
            weights=ScoringWeights(
                plan_priority=1.0, recency=0, relevance=0, engagement=0, location=0
            )
        )
        listing = make_listing("a", plan_type="featured")
        assert compute_score(listing, config=config, now=now) == pytest.approx(85.0)

    def test_breakdown_reports_every_factor(self, make_listing, now):
        breakdown = ScoreCalculator().score_breakdown(make_listing("a"), now=now)
        for name in ("plan_priority", "recency", "relevance", "engagement", "location"):
            assert name in breakdown
        assert breakdown["final"] == pytest.approx(41.5)

    def test_explicit_empty_strategy_list_is_kept(self, make_listing, now):
        calculator = ScoreCalculator(scoring_strategies=[])
        breakdown = calculator.score_breakdown(make_listing("a"), now=now)

        assert "plan_priority" not in breakdown
        assert breakdown["final"] == 0.0

    def test_custom_strategy_list(self, make_listing, now):
        calculator = ScoreCalculator(scoring_strategies=[RecencyScoring()])
        # recency 100 * weight 0.25
        assert calculator.score(make_listing("a"), now=now) == pytest.approx(25.0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(PydanticValidationError):
            ScoringWeights(plan_priority=0.5)


class TestRecencyScoring:
    def _score(self, listing, now):
        value, name = RecencyScoring().calculate(listing, None, None, now)
        assert name == "recency"
        return value

    def test_fresh_listing_scores_100(self, make_listing, now):
        assert self._score(make_listing("a", published_at=now), now) == 100.0

    def test_linear_decay(self, make_listing, now):
        listing = make_listing("a", published_at=now - timedelta(days=10))
        assert self._score(listing, now) == pytest.approx(80.0)

    @pytest.mark.parametrize("days", [50, 51, 400])
    def test_zero_at_or_after_fifty_days(self, make_listing, now, days):
        listing = make_listing("a", published_at=now - timedelta(days=days))
        assert self._score(listing, now) == 0.0

    def test_unpublished_listing_has_no_recency(self, make_listing, now):
        assert self._score(make_listing("a", published_at=None), now) == 0.0

    def test_naive_timestamp_treated_as_utc(self, make_listing, now):
        naive = (now - timedelta(days=5)).replace(tzinfo=None)
        assert self._score(make_listing("a", published_at=naive), now) == pytest.approx(90.0)


class TestRelevanceScoring:
    @pytest.mark.parametrize(
        "title, description, tags, expected",
        [
            ("Red bike", "", [], 50),
            ("Chair", "a red bike", [], 30),
            ("Chair", "", ["bike"], 20),
            ("Bike", "bike for sale", [], 80),
            ("Bike", "", ["mtb-bike"], 70),
            ("Chair", "bike", ["bike"], 50),
            ("BIKE", "Bike", ["Bike"], 100),
            ("Chair", "Table", ["wood"], 0),
        ],
    )
    def test_field_combinations(self, make_listing, now, title, description, tags, expected):
        listing = make_listing("a", title=title, description=description, tags=tags)
        value, _ = RelevanceScoring().calculate(listing, "bike", None, now)
        assert value == expected

    @pytest.mark.parametrize("query", [None, ""])
    def test_neutral_without_query(self, make_listing, now, query):
        value, _ = RelevanceScoring().calculate(make_listing("a"), query, None, now)
        assert value == 50


class TestEngagementScoring:
    def test_linear_combination(self, make_listing, now):
        listing = make_listing("a", views=100, favorites=3, contacts=2)
        value, _ = EngagementScoring().calculate(listing, None, None, now)
        assert value == pytest.approx(10 + 6 + 10)

    def test_saturates_at_100(self, make_listing, now):
        listing = make_listing("a", views=100000)
        value, _ = EngagementScoring().calculate(listing, None, None, now)
        assert value == 100.0


class TestLocationScoring:
    SAO_PAULO = ListingLocation(state="SP", city="São Paulo", latitude=-23.5505, longitude=-46.6333)

    def test_neutral_without_user_location(self, make_listing, now):
        listing = make_listing("a", location=self.SAO_PAULO)
        value, _ = LocationScoring().calculate(listing, None, None, now)
        assert value == 50.0

    def test_neutral_without_listing_coordinates(self, make_listing, now):
        value, _ = LocationScoring().calculate(
            make_listing("a"), None, GeoPoint(lat=-23.5, lng=-46.6), now
        )
        assert value == 50.0

    @pytest.mark.parametrize("latitude, longitude", [(95.0, 10.0), (-23.5, 200.0)])
    def test_neutral_with_out_of_range_coordinates(self, make_listing, now, latitude, longitude):
        listing = make_listing(
            "a", location=ListingLocation(latitude=latitude, longitude=longitude)
        )
        assert listing.location.coordinates is None

        value, _ = LocationScoring().calculate(listing, None, GeoPoint(lat=0, lng=0), now)
        assert value == 50.0

    def test_same_point_scores_100(self, make_listing, now):
        listing = make_listing("a", location=self.SAO_PAULO)
        user = GeoPoint(lat=-23.5505, lng=-46.6333)
        value, _ = LocationScoring().calculate(listing, None, user, now)
        assert value == pytest.approx(100.0)

    def test_loses_a_point_per_ten_km(self, make_listing, now):
        listing = make_listing("a", location=self.SAO_PAULO)
        rio = GeoPoint(lat=-22.9068, lng=-43.1729)
        distance = haversine_km(rio.lat, rio.lng, -23.5505, -46.6333)
        value, _ = LocationScoring().calculate(listing, None, rio, now)
        assert value == pytest.approx(100 - distance / 10)

    def test_far_away_floors_at_zero(self, make_listing, now):
        listing = make_listing("a", location=self.SAO_PAULO)
        lisbon = GeoPoint(lat=38.7223, lng=-9.1393)
        value, _ = LocationScoring().calculate(listing, None, lisbon, now)
        assert value == 0.0


def test_haversine_sao_paulo_to_rio():
    distance = haversine_km(-23.5505, -46.6333, -22.9068, -43.1729)
    assert 350 < distance < 365


class TestDisplayGate:
    def test_enterprise_always_passes(self, make_listing, scripted_rng):
        rng = scripted_rng(default=0.999999)
        assert passes_display_gate(make_listing("a", plan_type="enterprise"), rng)

    @pytest.mark.parametrize(
        "tier, probability",
        [("free", 0.40), ("basic", 0.65), ("premium", 0.85), ("featured", 0.95)],
    )
    def test_threshold_per_tier(self, make_listing, scripted_rng, tier, probability):
        listing = make_listing("a", plan_type=tier)
        rng = scripted_rng([probability - 0.01, probability])
        assert passes_display_gate(listing, rng) is True
        assert passes_display_gate(listing, rng) is False

    def test_unknown_tier_uses_free_probability(self, make_listing, scripted_rng):
        listing = make_listing("a", plan_type="platinum")
        assert passes_display_gate(listing, scripted_rng([0.39])) is True
        assert passes_display_gate(listing, scripted_rng([0.41])) is False

    def test_draws_once_per_call(self, make_listing, scripted_rng):
        rng = scripted_rng()
        listing = make_listing("a", plan_type="enterprise")
        for _ in range(3):
            passes_display_gate(listing, rng)
        assert rng.calls == 3

    def test_defaults_to_module_random(self, make_listing):
        assert passes_display_gate(make_listing("a", plan_type="enterprise")) is True
