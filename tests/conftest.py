"""
Shared fakes and helpers for the quickcafe tests.

Async code is driven with ``asyncio.run`` from plain test functions, so
anything bound to an event loop (database engines, clients) is created inside
the coroutine under test rather than in a fixture.
"""

import json

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from quickcafe.entities import (
    CafeEntity,
    Coordinates,
    PlaceDetails,
    PlaceSummary,
    ScoringRequest,
    SearchCacheEntry,
)
from quickcafe.errors import GeocodingError, RateLimitedError
from quickcafe.repositories import SqlDurableStore
from quickcafe.services.retry import RetryPolicy
from quickcafe.services.scoring import AMENITY_TYPES, VIBE_CATEGORIES

SEATTLE = Coordinates(47.6062, -122.3321)

LONG_REVIEW = (
    "Lovely little spot with warm lighting, soft chairs and fast wifi. "
    "I come here every weekend to read."
)


async def make_store() -> SqlDurableStore:
    """Fresh in-memory SQLite store with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    store = SqlDurableStore(engine=engine)
    await store.create_schema()
    return store


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def instant_retry(max_attempts: int = 3, sleep: SleepRecorder | None = None) -> RetryPolicy:
    return RetryPolicy(max_attempts=max_attempts, base_delay=1.0, sleep=sleep or SleepRecorder())


def scoring_payload(vibes: dict | None = None, amenities: dict | None = None, **drop) -> str:
    """Complete scorer JSON with every category at 0.1 unless overridden.

    Keyword ``drop_vibe``/``drop_amenity`` removes a category.
    """
    vibe_scores = {category: 0.1 for category in VIBE_CATEGORIES}
    amenity_scores = {amenity: 0.1 for amenity in AMENITY_TYPES}
    vibe_scores.update(vibes or {})
    amenity_scores.update(amenities or {})
    if "drop_vibe" in drop:
        vibe_scores.pop(drop["drop_vibe"])
    if "drop_amenity" in drop:
        amenity_scores.pop(drop["drop_amenity"])
    return json.dumps({"vibe_scores": vibe_scores, "amenity_scores": amenity_scores})


def make_cafe(
    external_id: str,
    name: str = "Test Cafe",
    location: Coordinates = SEATTLE,
    reviews: tuple[str, ...] = (LONG_REVIEW,),
    cafe_id: str | None = None,
    **kwargs,
) -> CafeEntity:
    return CafeEntity(
        external_id=external_id,
        name=name,
        location=location,
        reviews=reviews,
        id=cafe_id,
        **kwargs,
    )


class FakeFastStore:
    """In-memory FastStore that records TTLs and can simulate an outage."""

    def __init__(self, fail: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise ConnectionError("fast tier down")

    async def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, key: str) -> bool:
        self._check()
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    async def clear(self, prefix: str) -> int:
        self._check()
        keys = [key for key in self.data if key.startswith(prefix)]
        for key in keys:
            del self.data[key]
        return len(keys)

    async def health_check(self) -> bool:
        return not self.fail


class FakeDurableStore:
    """In-memory DurableStore covering the search cache and analysis runs."""

    def __init__(self) -> None:
        self.entries: dict[str, SearchCacheEntry] = {}
        self.analysis: dict[str, tuple[dict, dict, float]] = {}
        self.fail_replace = False

    async def get_search_entry(self, search_key: str) -> SearchCacheEntry | None:
        return self.entries.get(search_key)

    async def put_search_entry(self, entry: SearchCacheEntry) -> None:
        self.entries[entry.search_key] = entry

    async def delete_search_entry(self, search_key: str) -> bool:
        return self.entries.pop(search_key, None) is not None

    async def clear_search_entries(self) -> int:
        count = len(self.entries)
        self.entries.clear()
        return count

    async def replace_analysis(self, cafe_id, vibe_scores, amenity_scores, analyzed_at) -> None:
        if self.fail_replace:
            raise RuntimeError("database is locked")
        self.analysis[cafe_id] = (dict(vibe_scores), dict(amenity_scores), analyzed_at)

    async def get_analysis_timestamps(self, cafe_id: str):
        if cafe_id not in self.analysis:
            return None, None
        analyzed_at = self.analysis[cafe_id][2]
        return analyzed_at, analyzed_at

    async def health_check(self) -> bool:
        return True


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePlaceProvider:
    """PlaceProvider serving fixed places; details may be exceptions."""

    def __init__(
        self,
        places: list[PlaceSummary] | None = None,
        details: dict[str, PlaceDetails | Exception] | None = None,
        locations: dict[str, Coordinates] | None = None,
    ) -> None:
        self.places = places or []
        self.details = details or {}
        self.locations = locations or {"Seattle, WA": SEATTLE}
        self.search_calls: list[tuple] = []
        self.detail_calls: list[str] = []

    async def geocode(self, text: str) -> Coordinates:
        if text not in self.locations:
            raise GeocodingError(f"No results found for location: {text}")
        return self.locations[text]

    async def search_nearby(self, lat, lng, radius_meters, price_tier=None) -> list[PlaceSummary]:
        self.search_calls.append((lat, lng, radius_meters, price_tier))
        return list(self.places)

    async def get_details(self, external_id: str) -> PlaceDetails:
        self.detail_calls.append(external_id)
        detail = self.details.get(external_id, PlaceDetails(address="", reviews=(LONG_REVIEW,)))
        if isinstance(detail, Exception):
            raise detail
        return detail


class FakeTextScorer:
    """TextScorer answering per cafe name; unknown names get a low-score payload.

    A response may be an exception instance, raised on every call.
    """

    def __init__(self, responses: dict[str, str | Exception] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[ScoringRequest] = []

    @property
    def model_name(self) -> str:
        return "fake-scorer"

    async def score(self, request: ScoringRequest) -> str:
        self.calls.append(request)
        response = self.responses.get(request.name, scoring_payload())
        if isinstance(response, Exception):
            raise response
        return response

    def calls_for(self, name: str) -> int:
        return sum(1 for call in self.calls if call.name == name)


def rate_limited() -> RateLimitedError:
    return RateLimitedError("slow down", status_code=429)
