"""Recommendation result entities."""

from dataclasses import dataclass, field

from .cafe import CafeEntity, Coordinates


@dataclass(frozen=True)
class ScoredCafe:
    """A candidate cafe with its per-factor and combined scores."""

    cafe: CafeEntity
    distance_meters: float
    vibe_score: float
    amenity_score: float
    distance_score: float
    price_score: float
    combined_score: float


@dataclass(frozen=True)
class RecommendationResult:
    """Ranked output of one recommendation request.

    Attributes:
        coordinates: The resolved search location
        recommendations: Primary set, best first
        other_options: Secondary pool following the primary set
        cache_hit: Whether candidate cafes came from the search cache
    """

    coordinates: Coordinates
    recommendations: list[ScoredCafe] = field(default_factory=list)
    other_options: list[ScoredCafe] = field(default_factory=list)
    cache_hit: bool = False
