"""Response DTOs for API endpoints."""

from pydantic import Field

from quickcafe.entities import PriceTier

from .base import ApiModel


class CafeRecommendationItem(ApiModel):
    """Single ranked cafe (in recommendations and other_options)."""

    entity_id: str = Field(..., description="Store identifier of the cafe")
    name: str = Field(..., description="Display name")
    address: str = Field("", description="Formatted address")
    distance_meters: float = Field(..., description="Distance from the search location", ge=0.0)
    price_tier: PriceTier | None = Field(None, description="Price tier, if known")
    vibe_score: float = Field(..., description="Mood match in [0, 1]")
    amenity_score: float = Field(..., description="Requirement match in [0, 1]")
    combined_score: float = Field(..., description="Weighted ranking score in [0, 1]")
    photos: list[str] = Field(default_factory=list, description="Photo URLs")


class RecommendationResponse(ApiModel):
    """Response DTO for a recommendation request.

    - the resolved location
    - cache_hit: whether candidates came from the search cache
    - recommendations: top results, best first
    - other_options: the next-best pool
    """

    location: str = Field(..., description="The location as requested")
    latitude: float
    longitude: float
    cache_hit: bool = Field(..., description="Whether candidate cafes came from the search cache")
    recommendations: list[CafeRecommendationItem] = Field(default_factory=list)
    other_options: list[CafeRecommendationItem] = Field(default_factory=list)


class LocationValidationResponse(ApiModel):
    """Response DTO for location validation."""

    valid: bool = Field(..., description="Whether the location could be geocoded")
    latitude: float | None = None
    longitude: float | None = None


class CacheClearResponse(ApiModel):
    """Response DTO for cache clear operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of search entries evicted", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(ApiModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether both cache tiers are reachable")
