"""Cafe domain entities."""

from dataclasses import dataclass, field, replace
from typing import Any

from .categories import PriceTier


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in degrees."""

    lat: float
    lng: float


@dataclass(frozen=True)
class PlaceSummary:
    """A nearby-search hit from the place provider."""

    external_id: str
    name: str
    lat: float
    lng: float


@dataclass(frozen=True)
class PlaceDetails:
    """Per-place detail fetched from the place provider."""

    address: str
    reviews: tuple[str, ...] = ()
    price_tier: PriceTier | None = None
    hours: dict[str, dict[str, str]] | None = None
    photos: tuple[str, ...] = ()


@dataclass(frozen=True)
class CafeEntity:
    """Domain entity for a cafe.

    ``external_id`` is the immutable provider identity; ``id`` is assigned by
    the cafe store on first insert and kept across re-discovery.

    Attributes:
        external_id: Provider place identifier (unique)
        name: Display name
        location: Latitude/longitude of the cafe
        address: Formatted address
        price_tier: Price tier, or None when the provider does not report one
        reviews: Raw review texts (bounded by the provider)
        hours: Optional operating hours keyed by weekday
        photos: Optional photo URLs
        last_fetched: Unix timestamp of the last provider fetch
        id: Store-assigned identifier, None until persisted
    """

    external_id: str
    name: str
    location: Coordinates
    address: str = ""
    price_tier: PriceTier | None = None
    reviews: tuple[str, ...] = ()
    hours: dict[str, Any] | None = None
    photos: tuple[str, ...] = ()
    last_fetched: float = 0.0
    id: str | None = None

    @classmethod
    def from_place(
        cls, summary: PlaceSummary, details: PlaceDetails, fetched_at: float
    ) -> "CafeEntity":
        """Build an unpersisted entity from provider search and detail data."""
        return cls(
            external_id=summary.external_id,
            name=summary.name,
            location=Coordinates(summary.lat, summary.lng),
            address=details.address,
            price_tier=details.price_tier,
            reviews=details.reviews,
            hours=details.hours,
            photos=details.photos,
            last_fetched=fetched_at,
        )

    def with_id(self, cafe_id: str) -> "CafeEntity":
        return replace(self, id=cafe_id)

    @property
    def review_chars(self) -> int:
        """Total characters of review text available for analysis."""
        return sum(len(review) for review in self.reviews)


@dataclass(frozen=True)
class NearbyCafe:
    """A stored cafe returned by a spatial query, with its persisted scores."""

    cafe: CafeEntity
    distance_meters: float
    vibe_scores: dict[str, float] = field(default_factory=dict)
    amenity_scores: dict[str, float] = field(default_factory=dict)
