"""Analysis and cache domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ScoringRequest:
    """Everything the text scorer sees about one cafe.

    Attributes:
        cafe_id: Store identifier, used only for logging and result routing
        name: Cafe name
        reviews: Truncated review snippets
        address: Formatted address
        hours: Operating hours, if known
    """

    cafe_id: str
    name: str
    reviews: tuple[str, ...]
    address: str = ""
    hours: dict[str, Any] | None = None


@dataclass(frozen=True)
class AnalysisResult:
    """Fully validated per-category confidences for one cafe.

    Both maps cover every known category with a value in [0, 1].
    """

    vibe_scores: dict[str, float]
    amenity_scores: dict[str, float]


@dataclass(frozen=True)
class InvalidResponse:
    """A scorer response that failed validation, with the reason."""

    reason: str


@dataclass(frozen=True)
class SearchCacheEntry:
    """Cafe IDs that matched a search key, with the time they were produced."""

    search_key: str
    entity_ids: list[str]
    updated_at: float
