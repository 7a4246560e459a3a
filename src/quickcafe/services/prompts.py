"""Prompt construction for the review scorer.

Pure functions from a typed ``ScoringRequest`` to chat messages, kept apart
from orchestration so the exact text sent to the model is testable.
"""

import json

from quickcafe.entities import CafeEntity, ScoringRequest

from .scoring import AMENITY_TYPES, VIBE_CATEGORIES

SYSTEM_PROMPT = (
    "You are a cafe analysis expert. "
    "Return ONLY a compact, valid JSON object with numeric scores between 0 and 1."
)

VIBE_DESCRIPTIONS = {
    "cozy": "warm, comfortable atmosphere",
    "modern": "contemporary design, minimalist",
    "quiet": "peaceful, good for work/study",
    "lively": "energetic, social atmosphere",
    "artistic": "creative, unique decor",
    "traditional": "classic cafe feel",
    "industrial": "exposed elements, warehouse style",
}

AMENITY_DESCRIPTIONS = {
    "wifi": "reliable internet access",
    "outdoor_seating": "quality of outdoor space",
    "power_outlets": "availability for devices",
    "pet_friendly": "welcomes pets",
    "parking": "ease of parking",
    "workspace_friendly": "good for working",
    "food_menu": "food options quality",
}


def build_scoring_request(
    cafe: CafeEntity,
    max_reviews: int = 3,
    char_budget: int = 150,
) -> ScoringRequest:
    """Select and truncate review snippets for one cafe.

    Args:
        cafe: A persisted cafe
        max_reviews: Number of reviews to consider, in stored order
        char_budget: Maximum characters kept from each review

    Returns:
        ScoringRequest with empty snippets dropped
    """
    snippets = tuple(
        text[:char_budget]
        for text in (review.strip() for review in cafe.reviews[:max_reviews])
        if text
    )
    return ScoringRequest(
        cafe_id=cafe.id or cafe.external_id,
        name=cafe.name,
        reviews=snippets,
        address=cafe.address,
        hours=cafe.hours,
    )


def _category_lines(descriptions: dict[str, str], categories: tuple[str, ...]) -> str:
    return "\n".join(f"- {name}: {descriptions[name]}" for name in categories)


def _expected_shape() -> str:
    shape = {
        "vibe_scores": {name: "<score>" for name in VIBE_CATEGORIES},
        "amenity_scores": {name: "<score>" for name in AMENITY_TYPES},
    }
    return json.dumps(shape, indent=2)


def build_user_prompt(request: ScoringRequest) -> str:
    reviews = "\n\n".join(request.reviews)
    hours = json.dumps(request.hours) if request.hours else "unknown"

    return f"""Analyze these reviews for {request.name} and return a JSON object with vibe and amenity scores.

Reviews:
{reviews}

Operating Hours: {hours}
Address: {request.address or "unknown"}

Consider:
1. Review content and sentiment
2. Operating hours (e.g., late night spots vs early morning cafes)
3. Location and neighborhood characteristics
4. Customer descriptions and experiences

Score these aspects from 0.0 to 1.0:

Vibes (only score high if explicitly mentioned or strongly implied):
{_category_lines(VIBE_DESCRIPTIONS, VIBE_CATEGORIES)}

Amenities (only score high if explicitly mentioned or clearly evident):
{_category_lines(AMENITY_DESCRIPTIONS, AMENITY_TYPES)}

Return ONLY a JSON object with this structure (no example scores):
{_expected_shape()}

Important:
1. Score based ONLY on evidence in reviews and cafe details
2. Use high scores (>0.7) only when explicitly mentioned
3. Use low scores (<0.3) for aspects not mentioned
4. Keep JSON compact (no whitespace)
5. Include ALL properties with appropriate scores"""


def build_messages(request: ScoringRequest) -> list[dict[str, str]]:
    """Render a scoring request as chat messages."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(request)},
    ]
