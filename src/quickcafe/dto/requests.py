"""Request DTOs for API endpoints."""

from pydantic import Field

from quickcafe.entities import AmenityType, PriceTier, VibeCategory

from .base import ApiModel


class RecommendationRequest(ApiModel):
    """Request DTO for cafe recommendations.

    The handler converts this into a call to the recommendation service.
    """

    location: str = Field(..., description="Free-text location to search around", min_length=1)
    mood: VibeCategory = Field(..., description="Desired cafe vibe")
    price_range: PriceTier | None = Field(
        None,
        description="Preferred price tier ('$', '$$' or '$$$'); omit for no preference",
    )
    requirements: list[AmenityType] = Field(
        default_factory=list,
        description="Amenities the cafe should offer",
    )
