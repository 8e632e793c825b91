"""
Repository interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
The ranking engine never talks to these; only the service layer does.
"""
from typing import List, Optional, Protocol, runtime_checkable

from classifieds.models.schemas import Listing, PlanTier


@runtime_checkable
class ListingRepository(Protocol):
    """
    Interface for listing snapshot access.
    Production: marketplace database or search index.
    Testing: In-memory mock implementation.
    """

    async def get_snapshot(self) -> List[Listing]:
        """
        Fetch the current listing collection.

        Returns:
            All listings regardless of status (may be empty)
        """
        ...

    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        """
        Fetch a single listing by identifier.

        Args:
            listing_id: Listing identifier

        Returns:
            Listing if found, None otherwise
        """
        ...


@runtime_checkable
class PlanRepository(Protocol):
    """Interface for plan tier definitions."""

    async def get_plans(self) -> List[PlanTier]:
        """Return all plan tiers ordered low -> high visibility."""
        ...
