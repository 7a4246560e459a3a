from typing import Any

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from quickcafe.config import settings
from quickcafe.dto import (
    CacheClearResponse,
    HealthCheckResponse,
    LocationValidationResponse,
    RecommendationRequest,
    RecommendationResponse,
)

from .dependencies import HandlerDep, lifespan

app = FastAPI(
    title="QuickCafe API",
    description="Mood-based cafe recommendations from review analysis",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "QuickCafe API",
        "version": "0.1.0",
        "endpoints": {
            "recommendations": "/recommendations",
            "validate_location": "/locations/validate",
            "clear_cache": "/cache/clear",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    return await handler.health_check()


@app.post("/recommendations", response_model=RecommendationResponse)
async def recommend(request: RecommendationRequest, handler: HandlerDep) -> RecommendationResponse:
    """
    Rank cafes near a location for a mood, price range and amenity requirements.

    Returns the top recommendations plus a pool of other options.
    """
    return await handler.recommend(request)


@app.get("/locations/validate", response_model=LocationValidationResponse)
async def validate_location(
    handler: HandlerDep,
    location: str = Query(..., min_length=1, description="Free-text location"),
) -> LocationValidationResponse:
    return await handler.validate_location(location)


@app.post("/cache/clear", response_model=CacheClearResponse)
async def clear_cache(handler: HandlerDep) -> CacheClearResponse:
    """Evict every cached search result from both cache tiers."""
    return await handler.clear_cache()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "quickcafe.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
