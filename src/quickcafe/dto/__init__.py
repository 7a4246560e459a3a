"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import RecommendationRequest
from .responses import (
    CacheClearResponse,
    CafeRecommendationItem,
    HealthCheckResponse,
    LocationValidationResponse,
    RecommendationResponse,
)

__all__ = [
    "RecommendationRequest",
    "CafeRecommendationItem",
    "RecommendationResponse",
    "LocationValidationResponse",
    "CacheClearResponse",
    "HealthCheckResponse",
]
