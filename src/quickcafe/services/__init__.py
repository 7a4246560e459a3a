"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> RecommendationService -> {CacheCoordinator, AnalysisOrchestrator} -> scoring
    (HTTP)  -> (Business)                                                        -> (Pure)

Usage:
    ```python
    from quickcafe.services import CacheCoordinator, RecommendationService

    cache = CacheCoordinator.create(fast_store=fast, durable_store=store)
    service = RecommendationService(places=places, store=store, cache=cache, analysis=analysis)
    ```
"""

from .analysis_service import AnalysisOrchestrator
from .cache_service import CacheCoordinator, search_cache_key
from .recommendation_service import RecommendationService
from .retry import RetryPolicy
from .scoring import ScoreWeights

__all__ = [
    "AnalysisOrchestrator",
    "CacheCoordinator",
    "RecommendationService",
    "RetryPolicy",
    "ScoreWeights",
    "search_cache_key",
]
