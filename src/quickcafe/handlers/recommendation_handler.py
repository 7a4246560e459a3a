"""HTTP handlers for recommendation operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error mapping.
"""

import logging

from fastapi import HTTPException, status

from quickcafe.dto import (
    CacheClearResponse,
    CafeRecommendationItem,
    HealthCheckResponse,
    LocationValidationResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from quickcafe.entities import ScoredCafe
from quickcafe.errors import (
    GeocodingError,
    InvalidRequestError,
    NotFoundError,
    QuickCafeError,
    RecommendationTimeoutError,
    UpstreamError,
)
from quickcafe.services import RecommendationService

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[QuickCafeError], int]] = [
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (GeocodingError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (RecommendationTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
]


def to_http_exception(exc: QuickCafeError) -> HTTPException:
    """Map a domain error to the matching HTTP status."""
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def to_item(scored: ScoredCafe) -> CafeRecommendationItem:
    cafe = scored.cafe
    return CafeRecommendationItem(
        entity_id=cafe.id or cafe.external_id,
        name=cafe.name,
        address=cafe.address,
        distance_meters=round(scored.distance_meters, 1),
        price_tier=cafe.price_tier,
        vibe_score=scored.vibe_score,
        amenity_score=scored.amenity_score,
        combined_score=scored.combined_score,
        photos=list(cafe.photos),
    )


class RecommendationHandler:
    """HTTP handlers for recommendation operations.

    This handler delegates business logic to RecommendationService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Mapping domain errors to status codes

    Example:
        ```python
        handler = RecommendationHandler(recommendation_service=service)

        @app.post("/recommendations", response_model=RecommendationResponse)
        async def recommend(request: RecommendationRequest):
            return await handler.recommend(request)
        ```
    """

    def __init__(self, recommendation_service: RecommendationService) -> None:
        """Initialize the handler.

        Args:
            recommendation_service: The recommendation service (required).
        """
        self._service = recommendation_service

    async def recommend(self, request: RecommendationRequest) -> RecommendationResponse:
        """Handle POST /recommendations requests.

        Raises:
            HTTPException: 400 for bad input or an unresolvable location,
                404 when nothing matches, 504 on timeout
        """
        try:
            result = await self._service.recommend(
                location=request.location,
                mood=request.mood,
                price_tier=request.price_range,
                requirements=request.requirements,
            )
        except QuickCafeError as e:
            raise to_http_exception(e) from e
        except Exception as e:
            logger.exception("Recommendation failed for %r", request.location)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get recommendations: {e}",
            ) from e

        return RecommendationResponse(
            location=request.location,
            latitude=result.coordinates.lat,
            longitude=result.coordinates.lng,
            cache_hit=result.cache_hit,
            recommendations=[to_item(s) for s in result.recommendations],
            other_options=[to_item(s) for s in result.other_options],
        )

    async def validate_location(self, location: str) -> LocationValidationResponse:
        """Handle GET /locations/validate requests."""
        try:
            coordinates = await self._service.validate_location(location)
        except QuickCafeError as e:
            raise to_http_exception(e) from e

        return LocationValidationResponse(
            valid=True,
            latitude=coordinates.lat,
            longitude=coordinates.lng,
        )

    async def clear_cache(self) -> CacheClearResponse:
        """Handle POST /cache/clear requests."""
        try:
            count = await self._service.clear_cache()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        return CacheClearResponse(
            success=True,
            deleted_count=count,
            message="Cache cleared successfully",
        )

    async def health_check(self) -> HealthCheckResponse:
        is_healthy = await self._service.is_healthy()

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
        )
