"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings

from classifieds.core.exceptions import RankingServiceError
from classifieds.models.schemas import (
    AlgorithmConfig,
    CategoryConfig,
    HomepageConfig,
    ScoringWeights,
    SearchConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Classifieds Ranking API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Seed for the placement random source; unset means non-reproducible output
    RANDOM_SEED: Optional[int] = None

    # Scoring weights (must sum to 1.0)
    WEIGHT_PLAN_PRIORITY: float = 0.40
    WEIGHT_RECENCY: float = 0.25
    WEIGHT_RELEVANCE: float = 0.20
    WEIGHT_ENGAGEMENT: float = 0.10
    WEIGHT_LOCATION: float = 0.05

    # Homepage slots
    HOMEPAGE_FEATURED_SLOTS: int = 4
    HOMEPAGE_PREMIUM_SLOTS: int = 8
    HOMEPAGE_REGULAR_SLOTS: int = 12
    HOMEPAGE_ROTATION_INTERVAL_SEC: int = 30

    # Search mixing
    SEARCH_BOOST_PREMIUM_POSITIONS: int = 3
    SEARCH_MIX_RATIO: float = 0.3

    # Category pages
    CATEGORY_HIGHLIGHTED_ADS: int = 4
    CATEGORY_STANDARD_ADS_PER_PAGE: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()


def build_algorithm_config(settings: Settings) -> AlgorithmConfig:
    """
    Translate flat settings into the engine's AlgorithmConfig.

    Raises:
        RankingServiceError: If the values are invalid (e.g. weights != 1.0)
    """
    try:
        return AlgorithmConfig(
            weights=ScoringWeights(
                plan_priority=settings.WEIGHT_PLAN_PRIORITY,
                recency=settings.WEIGHT_RECENCY,
                relevance=settings.WEIGHT_RELEVANCE,
                engagement=settings.WEIGHT_ENGAGEMENT,
                location=settings.WEIGHT_LOCATION,
            ),
            homepage=HomepageConfig(
                featured_slots=settings.HOMEPAGE_FEATURED_SLOTS,
                premium_slots=settings.HOMEPAGE_PREMIUM_SLOTS,
                regular_slots=settings.HOMEPAGE_REGULAR_SLOTS,
                rotation_interval=settings.HOMEPAGE_ROTATION_INTERVAL_SEC,
            ),
            search=SearchConfig(
                boost_premium_positions=settings.SEARCH_BOOST_PREMIUM_POSITIONS,
                mix_ratio=settings.SEARCH_MIX_RATIO,
            ),
            category=CategoryConfig(
                highlighted_ads=settings.CATEGORY_HIGHLIGHTED_ADS,
                standard_ads_per_page=settings.CATEGORY_STANDARD_ADS_PER_PAGE,
            ),
        )
    except PydanticValidationError as e:
        raise RankingServiceError(f"invalid algorithm configuration: {e}") from e
