"""Repository implementations package."""
from .memory import InMemoryListingRepository, InMemoryPlanRepository

__all__ = [
    "InMemoryListingRepository",
    "InMemoryPlanRepository",
]
