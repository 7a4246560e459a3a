"""Durable storage protocol.

Defines the persistence contract for cafes, their analysis scores and the
durable tier of the search cache. Every write is a full-record replacement
keyed by identity, so concurrent writers degrade to last-write-wins.

Implementations can include:
- SQLAlchemy over SQLite or PostgreSQL (default)
- Supabase/PostgREST
"""

from typing import Protocol, runtime_checkable

from quickcafe.entities import (
    CafeEntity,
    Coordinates,
    NearbyCafe,
    PriceTier,
    SearchCacheEntry,
)


@runtime_checkable
class DurableStore(Protocol):
    """Protocol for the durable store."""

    async def upsert_cafes(self, cafes: list[CafeEntity]) -> list[CafeEntity]:
        """Insert or update cafes keyed by external_id.

        Args:
            cafes: Cafes to persist (``id`` may be None)

        Returns:
            The persisted cafes, in input order, each carrying its store id
        """
        ...

    async def get_cafes(self, cafe_ids: list[str]) -> list[CafeEntity]:
        """Load cafes by store id, in the order given. Unknown ids are skipped."""
        ...

    async def find_nearby(
        self,
        center: Coordinates,
        radius_meters: float,
        price_tier: PriceTier | None = None,
        cafe_ids: list[str] | None = None,
    ) -> list[NearbyCafe]:
        """Spatial query for stored cafes within a radius.

        Args:
            center: Search center
            radius_meters: Search radius
            price_tier: Only return cafes of this tier, if given
            cafe_ids: Only consider these cafes, if given

        Returns:
            Matching cafes with distance and persisted score maps,
            ordered by ascending distance
        """
        ...

    async def replace_analysis(
        self,
        cafe_id: str,
        vibe_scores: dict[str, float],
        amenity_scores: dict[str, float],
        analyzed_at: float,
    ) -> None:
        """Atomically replace all score records for a cafe and stamp the run.

        Either every old category is replaced by the new set, or nothing changes.
        """
        ...

    async def get_analysis_timestamps(self, cafe_id: str) -> tuple[float | None, float | None]:
        """Return (vibes_analyzed_at, amenities_analyzed_at) for a cafe."""
        ...

    async def get_search_entry(self, search_key: str) -> SearchCacheEntry | None:
        """Read a durable search cache entry, regardless of age."""
        ...

    async def put_search_entry(self, entry: SearchCacheEntry) -> None:
        """Upsert a durable search cache entry."""
        ...

    async def delete_search_entry(self, search_key: str) -> bool:
        """Delete a durable search cache entry."""
        ...

    async def clear_search_entries(self) -> int:
        """Delete every durable search cache entry.

        Returns:
            Number of entries deleted
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...
