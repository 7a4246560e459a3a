"""QuickCafe - Mood-based cafe recommendations from review analysis.

This package provides a layered architecture for cafe recommendations:

Layers:
    - protocols: Interface contracts (FastStore, DurableStore, PlaceProvider, TextScorer)
    - repositories: Data access implementations (Redis, SQLAlchemy, Google Maps, OpenAI)
    - services: Business logic (scoring, caching, analysis, recommendation)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from quickcafe.repositories import SqlDurableStore, RedisFastStore
    from quickcafe.services import CacheCoordinator

    store = SqlDurableStore.create()
    cache = CacheCoordinator.create(fast_store=RedisFastStore.create(), durable_store=store)
    ```

For HTTP API:
    ```python
    from quickcafe.api.app import app
    ```
"""

from quickcafe.config import settings
from quickcafe.dto import RecommendationRequest, RecommendationResponse
from quickcafe.entities import (
    AmenityType,
    CafeEntity,
    PriceTier,
    RecommendationResult,
    ScoredCafe,
    VibeCategory,
)
from quickcafe.errors import QuickCafeError
from quickcafe.handlers import RecommendationHandler
from quickcafe.protocols import DurableStore, FastStore, PlaceProvider, TextScorer
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
)

__all__ = [
    # Configuration
    "settings",
    # Protocols (interfaces)
    "DurableStore",
    "FastStore",
    "PlaceProvider",
    "TextScorer",
    # Services (business logic)
    "AnalysisOrchestrator",
    "CacheCoordinator",
    "RecommendationService",
    # Handlers (HTTP)
    "RecommendationHandler",
    # Repositories (data access)
    "GooglePlacesProvider",
    "OpenAITextScorer",
    "RedisFastStore",
    "SqlDurableStore",
    # Entities (domain models)
    "AmenityType",
    "CafeEntity",
    "PriceTier",
    "RecommendationResult",
    "ScoredCafe",
    "VibeCategory",
    # Errors
    "QuickCafeError",
    # DTOs (API contracts)
    "RecommendationRequest",
    "RecommendationResponse",
]
