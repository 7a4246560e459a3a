"""Validation of raw scorer output.

The scorer returns untyped JSON. ``validate_analysis`` is the only way past
it: the result is either a complete ``AnalysisResult`` or an
``InvalidResponse`` explaining why the whole payload was rejected.
"""

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from quickcafe.entities import AnalysisResult, InvalidResponse

from .scoring import AMENITY_TYPES, VIBE_CATEGORIES

# Strict: booleans and numeric strings are rejected, ints are accepted.
Confidence = Annotated[float, Field(strict=True, ge=0.0, le=1.0)]


class ScoringPayload(BaseModel):
    """Expected shape of the scorer's JSON object."""

    model_config = ConfigDict(extra="ignore")

    vibe_scores: dict[str, Confidence]
    amenity_scores: dict[str, Confidence]

    @model_validator(mode="after")
    def check_categories(self) -> "ScoringPayload":
        missing_vibes = [c for c in VIBE_CATEGORIES if c not in self.vibe_scores]
        if missing_vibes:
            raise ValueError(f"missing vibe categories: {', '.join(missing_vibes)}")

        missing_amenities = [a for a in AMENITY_TYPES if a not in self.amenity_scores]
        if missing_amenities:
            raise ValueError(f"missing amenity categories: {', '.join(missing_amenities)}")

        return self


def validate_analysis(raw: str | bytes | Mapping[str, Any]) -> AnalysisResult | InvalidResponse:
    """Validate scorer output.

    Args:
        raw: JSON text from the scorer, or an already-decoded mapping

    Returns:
        AnalysisResult restricted to known categories, or InvalidResponse
    """
    try:
        if isinstance(raw, (str, bytes)):
            payload = ScoringPayload.model_validate_json(raw)
        else:
            payload = ScoringPayload.model_validate(raw)
    except ValidationError as exc:
        return InvalidResponse(reason=_summarize(exc))

    return AnalysisResult(
        vibe_scores={c: float(payload.vibe_scores[c]) for c in VIBE_CATEGORIES},
        amenity_scores={a: float(payload.amenity_scores[a]) for a in AMENITY_TYPES},
    )


def _summarize(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    suffix = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{location}: {first.get('msg', 'invalid')}{suffix}"
