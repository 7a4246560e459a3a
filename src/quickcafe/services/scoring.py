"""Pure scoring functions for ranking candidate cafes.

Every factor is a number in [0, 1]. Missing confidences are treated as
"unknown" and replaced by neutral values so that unanalyzed cafes stay
rankable instead of sinking to the bottom.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from quickcafe.entities import AmenityType, NearbyCafe, PriceTier, ScoredCafe, VibeCategory

# Only confidences strictly above these are persisted.
VIBE_PERSIST_THRESHOLD = 0.4
AMENITY_PERSIST_THRESHOLD = 0.5

NEUTRAL_VIBE_SCORE = 0.3
NEUTRAL_AMENITY_SCORE = 0.45
NEUTRAL_PRICE_SCORE = 1.0
COMPLEMENTARY_VIBE_SCALE = 0.75

COMPLEMENTARY_VIBES: dict[str, tuple[str, ...]] = {
    VibeCategory.COZY.value: (VibeCategory.QUIET.value, VibeCategory.TRADITIONAL.value),
    VibeCategory.MODERN.value: (VibeCategory.INDUSTRIAL.value, VibeCategory.ARTISTIC.value),
    VibeCategory.QUIET.value: (VibeCategory.COZY.value, VibeCategory.TRADITIONAL.value),
    VibeCategory.LIVELY.value: (VibeCategory.ARTISTIC.value, VibeCategory.MODERN.value),
    VibeCategory.ARTISTIC.value: (VibeCategory.MODERN.value, VibeCategory.LIVELY.value),
    VibeCategory.TRADITIONAL.value: (VibeCategory.COZY.value, VibeCategory.QUIET.value),
    VibeCategory.INDUSTRIAL.value: (VibeCategory.MODERN.value, VibeCategory.ARTISTIC.value),
}

# Price score by tier distance; anything further apart scores 0.
_PRICE_SCORE_BY_DISTANCE = {0: 1.0, 1: 0.5}

VIBE_CATEGORIES = tuple(v.value for v in VibeCategory)
AMENITY_TYPES = tuple(a.value for a in AmenityType)


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the combined score. Must sum to 1."""

    vibe: float = 0.4
    amenity: float = 0.3
    distance: float = 0.2
    price: float = 0.1

    def __post_init__(self) -> None:
        values = (self.vibe, self.amenity, self.distance, self.price)
        if any(w < 0 for w in values):
            raise ValueError("Score weights must be non-negative")
        if abs(sum(values) - 1.0) > 1e-9:
            raise ValueError(f"Score weights must sum to 1, got {sum(values)}")


DEFAULT_WEIGHTS = ScoreWeights()


@dataclass(frozen=True)
class ScoreFactors:
    vibe: float
    amenity: float
    distance: float
    price: float


def _value(category: str | VibeCategory | AmenityType) -> str:
    return category.value if isinstance(category, (VibeCategory, AmenityType)) else category


def filter_confident(scores: Mapping[str, float], threshold: float) -> dict[str, float]:
    """Keep only the categories whose confidence is strictly above threshold."""
    return {category: score for category, score in scores.items() if score > threshold}


def vibe_score(target_mood: str | VibeCategory, vibe_confidences: Mapping[str, float]) -> float:
    """Score how well a cafe's vibes match the requested mood.

    Uses the direct confidence when one is persisted; otherwise the best
    complementary vibe, scaled down; otherwise a neutral floor.
    """
    mood = _value(target_mood)
    if mood in vibe_confidences:
        return vibe_confidences[mood]

    complements = [
        vibe_confidences[vibe]
        for vibe in COMPLEMENTARY_VIBES.get(mood, ())
        if vibe in vibe_confidences
    ]
    if complements:
        return max(complements) * COMPLEMENTARY_VIBE_SCALE

    return NEUTRAL_VIBE_SCORE


def amenity_score(
    required_amenities: Iterable[str | AmenityType],
    amenity_confidences: Mapping[str, float],
) -> float:
    """Mean confidence over the required amenities, 1.0 if none are required."""
    required = [_value(a) for a in required_amenities]
    if not required:
        return 1.0

    scores = [amenity_confidences.get(a, NEUTRAL_AMENITY_SCORE) for a in required]
    return sum(scores) / len(scores)


def distance_score(distance_meters: float, max_preferred_meters: float) -> float:
    """Linear decay from 1 at the center to 0 at max_preferred_meters."""
    if max_preferred_meters <= 0:
        return 0.0
    return max(0.0, 1.0 - max(distance_meters, 0.0) / max_preferred_meters)


def price_score(entity_tier: PriceTier | None, target_tier: PriceTier | None) -> float:
    """1.0 for an exact tier match, 0.5 for adjacent tiers, 0.0 otherwise.

    Neutral when either tier is unknown.
    """
    if entity_tier is None or target_tier is None:
        return NEUTRAL_PRICE_SCORE
    gap = abs(PriceTier(entity_tier).level - PriceTier(target_tier).level)
    return _PRICE_SCORE_BY_DISTANCE.get(gap, 0.0)


def combined_score(factors: ScoreFactors, weights: ScoreWeights = DEFAULT_WEIGHTS) -> float:
    return (
        factors.vibe * weights.vibe
        + factors.amenity * weights.amenity
        + factors.distance * weights.distance
        + factors.price * weights.price
    )


def score_candidate(
    candidate: NearbyCafe,
    target_mood: str | VibeCategory,
    required_amenities: Sequence[str | AmenityType],
    target_tier: PriceTier | None,
    max_preferred_meters: float,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> ScoredCafe:
    """Compute every factor and the combined score for one candidate."""
    factors = ScoreFactors(
        vibe=vibe_score(target_mood, candidate.vibe_scores),
        amenity=amenity_score(required_amenities, candidate.amenity_scores),
        distance=distance_score(candidate.distance_meters, max_preferred_meters),
        price=price_score(candidate.cafe.price_tier, target_tier),
    )
    return ScoredCafe(
        cafe=candidate.cafe,
        distance_meters=candidate.distance_meters,
        vibe_score=factors.vibe,
        amenity_score=factors.amenity,
        distance_score=factors.distance,
        price_score=factors.price,
        combined_score=combined_score(factors, weights),
    )


def rank(scored: Iterable[ScoredCafe]) -> list[ScoredCafe]:
    """Sort by combined score descending, then distance ascending.

    The sort is stable, so remaining ties keep their input order.
    """
    return sorted(scored, key=lambda s: (-s.combined_score, s.distance_meters))
