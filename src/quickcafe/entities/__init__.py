"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .analysis import AnalysisResult, InvalidResponse, ScoringRequest, SearchCacheEntry
from .cafe import CafeEntity, Coordinates, NearbyCafe, PlaceDetails, PlaceSummary
from .categories import AmenityType, PriceTier, VibeCategory
from .recommendation import RecommendationResult, ScoredCafe

__all__ = [
    "AmenityType",
    "AnalysisResult",
    "CafeEntity",
    "Coordinates",
    "InvalidResponse",
    "NearbyCafe",
    "PlaceDetails",
    "PlaceSummary",
    "PriceTier",
    "RecommendationResult",
    "ScoredCafe",
    "ScoringRequest",
    "SearchCacheEntry",
    "VibeCategory",
]
