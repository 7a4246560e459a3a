"""Two-tier cache coordinator.

This service puts a fast, ephemeral tier in front of the durable store for
two questions: "which cafes matched this search key" and "was this cafe
analyzed recently". Callers never see which tier answered.
"""

import json
import logging
import time
from collections.abc import Callable, Mapping

from quickcafe.config import settings
from quickcafe.entities import PriceTier, SearchCacheEntry
from quickcafe.protocols import DurableStore, FastStore

from .scoring import AMENITY_PERSIST_THRESHOLD, VIBE_PERSIST_THRESHOLD, filter_confident

logger = logging.getLogger(__name__)

SEARCH_PREFIX = "search:"
ANALYSIS_PREFIX = "analysis:"


def search_cache_key(
    lat: float,
    lng: float,
    radius_meters: int,
    price_tier: PriceTier | str | None = None,
) -> str:
    """Build the stable search key.

    Coordinates are rounded to 4 decimal places (~11 m) so that
    near-duplicate queries collide: ``"{lat},{lng}:{radius}[:{tier}]"``.
    """
    key = f"{lat:.4f},{lng:.4f}:{int(radius_meters)}"
    if price_tier:
        tier = price_tier.value if isinstance(price_tier, PriceTier) else price_tier
        key += f":{tier}"
    return key


class CacheCoordinator:
    """Core cache orchestration service.

    Reads go fast tier first, then durable tier, backfilling the fast tier
    on a durable hit. Writes go to both tiers. A failing tier is logged and
    skipped; it never fails the caller.

    This service depends on PROTOCOLS, not concrete implementations:
    - FastStore: Redis by default, may be None to run durable-only
    - DurableStore: SQLAlchemy by default

    Example:
        ```python
        cache = CacheCoordinator.create(
            fast_store=RedisFastStore.create(),
            durable_store=SqlDurableStore.create(),
        )
        key = search_cache_key(47.6062, -122.3321, 5000)
        ids = await cache.get_search_results(key)
        ```
    """

    def __init__(
        self,
        fast_store: FastStore | None,
        durable_store: DurableStore,
        fast_ttl: int | None = None,
        search_ttl: int | None = None,
        analysis_ttl: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache coordinator.

        Args:
            fast_store: Fast tier, or None to disable it.
            durable_store: Durable tier (required).
            fast_ttl: Fast tier TTL in seconds. Defaults to settings.
            search_ttl: Durable search cache TTL in seconds. Defaults to settings.
            analysis_ttl: Durable analysis freshness TTL in seconds. Defaults to settings.
            clock: Source of Unix timestamps.
        """
        self._fast = fast_store
        self._durable = durable_store
        self._fast_ttl = fast_ttl or settings.fast_cache_ttl
        self._search_ttl = search_ttl or settings.search_cache_ttl
        self._analysis_ttl = analysis_ttl or settings.analysis_ttl
        self._clock = clock

    @classmethod
    def create(
        cls,
        fast_store: FastStore | None,
        durable_store: DurableStore,
        fast_ttl: int | None = None,
        search_ttl: int | None = None,
        analysis_ttl: int | None = None,
    ) -> "CacheCoordinator":
        """Factory method to create CacheCoordinator with settings defaults."""
        return cls(
            fast_store=fast_store,
            durable_store=durable_store,
            fast_ttl=fast_ttl,
            search_ttl=search_ttl,
            analysis_ttl=analysis_ttl,
        )

    # ------------------------------------------------------------------
    # Search results
    # ------------------------------------------------------------------

    async def get_search_results(self, key: str) -> list[str] | None:
        """Return the cafe IDs cached for a search key, or None.

        Business logic:
        1. Fast tier hit within its TTL -> return it
        2. Durable tier hit within its TTL -> backfill fast tier, return it
        3. Durable hit past its TTL -> evict from both tiers, return None
        """
        now = self._clock()

        ids = await self._get_fast_search(key, now)
        if ids is not None:
            logger.debug("Fast tier hit for %s", key)
            return ids

        try:
            entry = await self._durable.get_search_entry(key)
        except Exception:
            logger.warning("Durable tier unavailable reading %s", key, exc_info=True)
            return None

        if entry is None:
            logger.info("Search cache miss for %s", key)
            return None

        age = now - entry.updated_at
        if age > self._search_ttl:
            logger.info("Durable search entry %s is stale (%.0fs old), evicting", key, age)
            await self.invalidate_search(key)
            return None

        logger.info("Durable tier hit for %s, backfilling fast tier", key)
        await self._set_fast_search(key, entry.entity_ids, entry.updated_at, now)
        return list(entry.entity_ids)

    async def put_search_results(self, key: str, entity_ids: list[str]) -> None:
        """Write cafe IDs for a search key to both tiers (last write wins)."""
        now = self._clock()
        ids = list(entity_ids)

        try:
            await self._durable.put_search_entry(
                SearchCacheEntry(search_key=key, entity_ids=ids, updated_at=now)
            )
        except Exception:
            logger.warning("Durable tier unavailable writing %s", key, exc_info=True)

        await self._set_fast_search(key, ids, now, now)

    async def invalidate_search(self, key: str) -> None:
        """Evict a search key from both tiers."""
        if self._fast is not None:
            try:
                await self._fast.delete(SEARCH_PREFIX + key)
            except Exception:
                logger.warning("Fast tier unavailable evicting %s", key, exc_info=True)

        try:
            await self._durable.delete_search_entry(key)
        except Exception:
            logger.warning("Durable tier unavailable evicting %s", key, exc_info=True)

    async def clear(self) -> int:
        """Evict every search entry from both tiers.

        Returns:
            Number of entries deleted across both tiers
        """
        count = 0
        if self._fast is not None:
            try:
                count += await self._fast.clear(SEARCH_PREFIX)
            except Exception:
                logger.warning("Fast tier unavailable during clear", exc_info=True)
        count += await self._durable.clear_search_entries()
        return count

    async def _get_fast_search(self, key: str, now: float) -> list[str] | None:
        if self._fast is None:
            return None

        try:
            raw = await self._fast.get(SEARCH_PREFIX + key)
        except Exception:
            logger.warning("Fast tier unavailable reading %s", key, exc_info=True)
            return None

        if raw is None:
            return None

        try:
            payload = json.loads(raw)
            ids = [str(i) for i in payload["entity_ids"]]
            updated_at = float(payload["updated_at"])
            cached_at = float(payload["cached_at"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable fast tier entry for %s", key)
            await self._delete_fast(SEARCH_PREFIX + key)
            return None

        if now - cached_at > self._fast_ttl or now - updated_at > self._search_ttl:
            await self._delete_fast(SEARCH_PREFIX + key)
            return None

        return ids

    async def _set_fast_search(
        self, key: str, ids: list[str], updated_at: float, now: float
    ) -> None:
        if self._fast is None:
            return

        # A backfilled entry must not outlive its durable source.
        ttl = int(min(self._fast_ttl, self._search_ttl - (now - updated_at)))
        if ttl <= 0:
            return

        payload = json.dumps({"entity_ids": ids, "updated_at": updated_at, "cached_at": now})
        try:
            await self._fast.set(SEARCH_PREFIX + key, payload, ttl)
        except Exception:
            logger.warning("Fast tier unavailable writing %s", key, exc_info=True)

    async def _delete_fast(self, key: str) -> None:
        if self._fast is None:
            return
        try:
            await self._fast.delete(key)
        except Exception:
            logger.warning("Fast tier unavailable deleting %s", key, exc_info=True)

    # ------------------------------------------------------------------
    # Analysis freshness
    # ------------------------------------------------------------------

    async def is_analysis_recent(self, cafe_id: str) -> bool:
        """Check whether both vibe and amenity analysis are within the TTL.

        A positive durable answer is cached in the fast tier.
        """
        if self._fast is not None:
            try:
                if await self._fast.get(ANALYSIS_PREFIX + cafe_id) is not None:
                    return True
            except Exception:
                logger.warning("Fast tier unavailable checking analysis of %s", cafe_id, exc_info=True)

        try:
            vibes_at, amenities_at = await self._durable.get_analysis_timestamps(cafe_id)
        except Exception:
            logger.warning("Durable tier unavailable checking analysis of %s", cafe_id, exc_info=True)
            return False

        if vibes_at is None or amenities_at is None:
            return False

        now = self._clock()
        analyzed_at = min(vibes_at, amenities_at)
        if now - analyzed_at > self._analysis_ttl:
            return False

        await self._mark_analyzed(cafe_id, analyzed_at, now)
        return True

    async def record_analysis(
        self,
        cafe_id: str,
        vibe_confidences: Mapping[str, float],
        amenity_confidences: Mapping[str, float],
    ) -> tuple[dict[str, float], dict[str, float]]:
        """Persist the confident part of an analysis, replacing the previous one.

        Vibes above 0.4 and amenities above 0.5 are stored; the rest are
        dropped. The run is stamped even when nothing passes the thresholds.

        Returns:
            The (vibes, amenities) that were persisted

        Raises:
            Exception: Whatever the durable store raised; nothing was replaced
        """
        vibes = filter_confident(vibe_confidences, VIBE_PERSIST_THRESHOLD)
        amenities = filter_confident(amenity_confidences, AMENITY_PERSIST_THRESHOLD)

        now = self._clock()
        await self._durable.replace_analysis(cafe_id, vibes, amenities, analyzed_at=now)
        await self._mark_analyzed(cafe_id, now, now)

        logger.debug(
            "Recorded analysis for %s: %d vibes, %d amenities", cafe_id, len(vibes), len(amenities)
        )
        return vibes, amenities

    async def _mark_analyzed(self, cafe_id: str, analyzed_at: float, now: float) -> None:
        if self._fast is None:
            return

        # The flag must not outlive the durable analysis it stands for.
        ttl = int(min(self._fast_ttl, self._analysis_ttl - (now - analyzed_at)))
        if ttl <= 0:
            return
        try:
            await self._fast.set(ANALYSIS_PREFIX + cafe_id, "1", ttl)
        except Exception:
            logger.warning("Fast tier unavailable marking %s analyzed", cafe_id, exc_info=True)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def is_healthy(self) -> bool:
        """Check if both tiers are reachable."""
        durable_ok = await self._durable.health_check()
        if self._fast is None:
            return durable_ok
        try:
            fast_ok = await self._fast.health_check()
        except Exception:
            fast_ok = False
        return durable_ok and fast_ok

    @property
    def fast_store(self) -> FastStore | None:
        """Get the fast tier (for testing)."""
        return self._fast

    @property
    def durable_store(self) -> DurableStore:
        """Get the durable tier (for testing)."""
        return self._durable
