"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from quickcafe.config import settings
from quickcafe.handlers import RecommendationHandler
from quickcafe.logging_config import setup_logging
from quickcafe.repositories import (
    GooglePlacesProvider,
    OpenAITextScorer,
    RedisFastStore,
    SqlDurableStore,
)
from quickcafe.services import (
    AnalysisOrchestrator,
    CacheCoordinator,
    RecommendationService,
    RetryPolicy,
)

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> RecommendationHandler:
    """Dependency injection for RecommendationHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The RecommendationHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "recommendation_handler", None)
    if handler is None:
        raise RuntimeError("RecommendationHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Repositories (durable store, fast store, providers)
    2. Services (cache coordinator, analysis orchestrator, recommendation service)
    3. Handler (HTTP endpoints) - stored in app.state.recommendation_handler

    Cleanup:
        Closes clients and removes everything from app.state on shutdown
    """
    setup_logging()

    durable_store = SqlDurableStore.create()
    await durable_store.create_schema()
    fast_store = RedisFastStore.create()
    retry_policy = RetryPolicy.create()
    places = GooglePlacesProvider(retry_policy=retry_policy)
    scorer = OpenAITextScorer.create()

    cache = CacheCoordinator.create(fast_store=fast_store, durable_store=durable_store)
    analysis = AnalysisOrchestrator.create(scorer=scorer, cache=cache, retry_policy=retry_policy)
    service = RecommendationService.create(
        places=places,
        store=durable_store,
        cache=cache,
        analysis=analysis,
    )

    app.state.recommendation_service = service
    app.state.recommendation_handler = RecommendationHandler(recommendation_service=service)

    logger.info("Database: %s", durable_store.url)
    logger.info("Redis: %s", settings.redis_url)
    logger.info("Scoring model: %s", scorer.model_name)
    logger.info("Cache healthy: %s", await service.is_healthy())

    yield

    del app.state.recommendation_handler
    del app.state.recommendation_service
    await places.close()
    await scorer.close()
    await fast_store.close()
    await durable_store.close()
    logger.info("Recommendation service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[RecommendationHandler, Depends(get_handler)]
