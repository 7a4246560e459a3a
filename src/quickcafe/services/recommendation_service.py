"""Recommendation service.

Wires the cache coordinator, the analysis orchestrator, the place provider
and the scoring model into one request flow:

    resolve key -> cache lookup -> (load cafes | search, persist, cache)
    -> ensure analysis -> score -> rank -> split
"""

import asyncio
import logging
import time
from collections.abc import Sequence

from quickcafe.config import settings
from quickcafe.entities import (
    AmenityType,
    CafeEntity,
    Coordinates,
    PlaceSummary,
    PriceTier,
    RecommendationResult,
    VibeCategory,
)
from quickcafe.errors import (
    GeocodingError,
    InvalidRequestError,
    NotFoundError,
    RecommendationTimeoutError,
    UpstreamError,
)
from quickcafe.protocols import DurableStore, PlaceProvider

from .analysis_service import AnalysisOrchestrator
from .cache_service import CacheCoordinator, search_cache_key
from .scoring import DEFAULT_WEIGHTS, ScoreWeights, rank, score_candidate

logger = logging.getLogger(__name__)

EXCLUDED_NAME_TERMS = ("mcdonalds", "burger", "taco", "subway", "pizza", "restaurant")
CAFE_NAME_TERMS = ("cafe", "café", "coffee", "espresso", "roaster", "tea")


def is_probable_cafe(name: str) -> bool:
    """Name heuristic for filtering nearby-search hits.

    A cafe-like term wins over an excluded one ("Cafe & Restaurant" stays).
    """
    lowered = name.lower()
    if any(term in lowered for term in CAFE_NAME_TERMS):
        return True
    return not any(term in lowered for term in EXCLUDED_NAME_TERMS)


class RecommendationService:
    """Top-level recommendation orchestration.

    Every collaborator is passed in explicitly so tests can substitute fakes.

    Example:
        ```python
        service = RecommendationService.create(
            places=GooglePlacesProvider.create(),
            store=store,
            cache=cache,
            analysis=orchestrator,
        )
        result = await service.recommend("Seattle, WA", VibeCategory.COZY, requirements=[AmenityType.WIFI])
        ```
    """

    def __init__(
        self,
        places: PlaceProvider,
        store: DurableStore,
        cache: CacheCoordinator,
        analysis: AnalysisOrchestrator,
        weights: ScoreWeights = DEFAULT_WEIGHTS,
        search_radius_meters: int | None = None,
        max_preferred_distance_meters: float | None = None,
        top_n: int | None = None,
        pool_size: int | None = None,
        timeout: float | None = None,
        require_analysis: bool | None = None,
        detail_concurrency: int | None = None,
    ) -> None:
        """Initialize the recommendation service.

        Args:
            places: Geocoding and place search provider (required).
            store: Durable cafe store (required).
            cache: Two-tier cache coordinator (required).
            analysis: Review analysis orchestrator (required).
            weights: Combined score weights.
            search_radius_meters: Search radius. Defaults to settings.
            max_preferred_distance_meters: Distance where the distance score hits 0.
            top_n: Size of the primary recommendation set. Defaults to settings.
            pool_size: Size of the secondary pool. Defaults to settings.
            timeout: Overall request deadline in seconds. Defaults to settings.
            require_analysis: Drop cafes without a recent analysis. Defaults to settings.
            detail_concurrency: Concurrent place detail fetches. Defaults to batch size.
        """
        self._places = places
        self._store = store
        self._cache = cache
        self._analysis = analysis
        self._weights = weights
        self._radius = search_radius_meters or settings.search_radius_meters
        self._max_distance = max_preferred_distance_meters or settings.max_preferred_distance_meters
        self._top_n = top_n or settings.top_n
        self._pool_size = settings.pool_size if pool_size is None else pool_size
        self._timeout = timeout or settings.request_timeout
        self._require_analysis = (
            settings.require_analysis if require_analysis is None else require_analysis
        )
        self._detail_concurrency = detail_concurrency or settings.analysis_batch_size

    @classmethod
    def create(
        cls,
        places: PlaceProvider,
        store: DurableStore,
        cache: CacheCoordinator,
        analysis: AnalysisOrchestrator,
    ) -> "RecommendationService":
        """Factory method to create RecommendationService with settings defaults."""
        return cls(places=places, store=store, cache=cache, analysis=analysis)

    async def recommend(
        self,
        location: str,
        mood: VibeCategory | str,
        price_tier: PriceTier | None = None,
        requirements: Sequence[AmenityType | str] = (),
    ) -> RecommendationResult:
        """Recommend cafes near a free-text location.

        Args:
            location: Free-text location, geocoded by the place provider
            mood: Desired vibe
            price_tier: Preferred price tier, if any
            requirements: Amenities the cafe should have

        Returns:
            RecommendationResult with the top-N set and a secondary pool

        Raises:
            InvalidRequestError: Blank location or unknown mood/amenity
            GeocodingError: The location could not be resolved
            NotFoundError: No cafes were found, or none survived filtering
            RecommendationTimeoutError: The overall deadline expired
            UpstreamError: The nearby search failed (RetryExhaustedError once
                throttling or network retries ran out)
        """
        if not location or not location.strip():
            raise InvalidRequestError("Location is required")
        try:
            mood = VibeCategory(mood)
            requirements = [AmenityType(r) for r in requirements]
            price_tier = PriceTier(price_tier) if price_tier else None
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from exc

        deadline = time.monotonic() + self._timeout
        try:
            return await asyncio.wait_for(
                self._recommend(location.strip(), mood, price_tier, requirements, deadline),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Recommendation for %r timed out after %.0fs", location, self._timeout)
            raise RecommendationTimeoutError(
                f"Request timed out after {self._timeout:.0f}s"
            ) from exc

    async def validate_location(self, location: str) -> Coordinates:
        """Geocode a location without searching.

        Raises:
            InvalidRequestError: Blank location
            GeocodingError: The location could not be resolved
        """
        if not location or not location.strip():
            raise InvalidRequestError("Location is required")
        return await self._geocode(location.strip())

    async def clear_cache(self) -> int:
        """Evict every cached search result. Returns the number of entries deleted."""
        count = await self._cache.clear()
        logger.info("Cleared %d search cache entries", count)
        return count

    async def is_healthy(self) -> bool:
        return await self._cache.is_healthy()

    async def _recommend(
        self,
        location: str,
        mood: VibeCategory,
        price_tier: PriceTier | None,
        requirements: list[AmenityType],
        deadline: float,
    ) -> RecommendationResult:
        coordinates = await self._geocode(location)
        key = search_cache_key(coordinates.lat, coordinates.lng, self._radius, price_tier)

        cafes = await self._load_cached(key)
        cache_hit = bool(cafes)
        if not cafes:
            cafes = await self._discover(coordinates, price_tier)
            await self._cache.put_search_results(key, [cafe.id for cafe in cafes])

        analyzed_ids = await self._ensure_analysis(cafes, deadline)
        candidate_ids = [cafe.id for cafe in cafes]
        if self._require_analysis:
            candidate_ids = [cafe_id for cafe_id in candidate_ids if cafe_id in analyzed_ids]

        nearby = await self._store.find_nearby(coordinates, self._radius, cafe_ids=candidate_ids)
        # Keep candidate order as the final tie-breaker.
        position = {cafe_id: index for index, cafe_id in enumerate(candidate_ids)}
        nearby.sort(key=lambda n: position[n.cafe.id])

        ranked = rank(
            score_candidate(
                candidate,
                mood,
                requirements,
                price_tier,
                self._max_distance,
                self._weights,
            )
            for candidate in nearby
        )
        if not ranked:
            raise NotFoundError("No cafes match your preferences")

        logger.info(
            "Ranked %d cafes for %r (cache %s)", len(ranked), location, "hit" if cache_hit else "miss"
        )
        return RecommendationResult(
            coordinates=coordinates,
            recommendations=ranked[: self._top_n],
            other_options=ranked[self._top_n : self._top_n + self._pool_size],
            cache_hit=cache_hit,
        )

    async def _geocode(self, location: str) -> Coordinates:
        try:
            return await self._places.geocode(location)
        except GeocodingError:
            raise
        except UpstreamError as exc:
            raise GeocodingError(f"Failed to geocode location: {exc}") from exc

    async def _load_cached(self, key: str) -> list[CafeEntity]:
        cached_ids = await self._cache.get_search_results(key)
        if not cached_ids:
            return []

        cafes = await self._store.get_cafes(cached_ids)
        if len(cafes) < len(cached_ids):
            logger.info(
                "Cache entry %s references %d missing cafes, searching again",
                key,
                len(cached_ids) - len(cafes),
            )
            await self._cache.invalidate_search(key)
            return []

        return cafes

    async def _discover(
        self, coordinates: Coordinates, price_tier: PriceTier | None
    ) -> list[CafeEntity]:
        """Search the place provider, fetch details and persist the cafes."""
        summaries = await self._places.search_nearby(
            coordinates.lat, coordinates.lng, self._radius, price_tier
        )
        summaries = [s for s in summaries if is_probable_cafe(s.name)]
        if not summaries:
            raise NotFoundError("No cafes found in this location")

        semaphore = asyncio.Semaphore(self._detail_concurrency)

        async def fetch(summary: PlaceSummary) -> CafeEntity | None:
            async with semaphore:
                try:
                    details = await self._places.get_details(summary.external_id)
                except UpstreamError as exc:
                    logger.warning("Skipping %s: %s", summary.external_id, exc)
                    return None
                except Exception:
                    logger.warning(
                        "Skipping %s after unexpected error", summary.external_id, exc_info=True
                    )
                    return None
            return CafeEntity.from_place(summary, details, fetched_at=time.time())

        fetched = await asyncio.gather(*(fetch(s) for s in summaries))
        found = [cafe for cafe in fetched if cafe is not None]
        if not found:
            raise NotFoundError("No cafe details could be retrieved for this location")

        # Persist before caching: a cached id must always be loadable.
        return await self._store.upsert_cafes(found)

    async def _ensure_analysis(self, cafes: list[CafeEntity], deadline: float) -> set[str]:
        """Analyze cafes whose analysis is missing or stale.

        Returns:
            IDs of cafes with a recent analysis after this step
        """
        recent = await asyncio.gather(*(self._cache.is_analysis_recent(c.id) for c in cafes))
        analyzed = {cafe.id for cafe, is_recent in zip(cafes, recent) if is_recent}
        stale = [cafe for cafe, is_recent in zip(cafes, recent) if not is_recent]

        if stale:
            results = await self._analysis.analyze(stale, deadline=deadline)
            analyzed.update(results)
            failed = len(stale) - len(results)
            if failed:
                logger.info("%d cafes left unanalyzed, scoring with neutral defaults", failed)

        return analyzed
