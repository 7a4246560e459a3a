"""Place provider protocol.

Defines the interface for geocoding, nearby search and place details.
Implementations must raise ``RateLimitedError`` for throttling, distinct
from ``UpstreamError`` for hard failures, and ``GeocodingError`` when a
location cannot be resolved.
"""

from typing import Protocol, runtime_checkable

from quickcafe.entities import Coordinates, PlaceDetails, PlaceSummary, PriceTier


@runtime_checkable
class PlaceProvider(Protocol):
    """Protocol for place search services."""

    async def geocode(self, text: str) -> Coordinates:
        """Resolve free text to coordinates."""
        ...

    async def search_nearby(
        self,
        lat: float,
        lng: float,
        radius_meters: int,
        price_tier: PriceTier | None = None,
    ) -> list[PlaceSummary]:
        """Find cafes within radius_meters of a point."""
        ...

    async def get_details(self, external_id: str) -> PlaceDetails:
        """Fetch address, reviews, price tier, hours and photos for a place."""
        ...
