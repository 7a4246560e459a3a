"""
End-to-end tests for the recommendation flow.

Runs against the real SQLAlchemy store (in-memory SQLite) with fake place,
scoring and fast-tier collaborators.
"""

import asyncio

import pytest

from quickcafe.entities import AmenityType, Coordinates, PlaceSummary, PriceTier, VibeCategory
from quickcafe.errors import (
    GeocodingError,
    InvalidRequestError,
    NotFoundError,
    RecommendationTimeoutError,
    RetryExhaustedError,
    UpstreamError,
)
from quickcafe.services import AnalysisOrchestrator, CacheCoordinator, RecommendationService
from quickcafe.services.recommendation_service import is_probable_cafe

from conftest import (
    SEATTLE,
    FakeClock,
    FakeFastStore,
    FakePlaceProvider,
    FakeTextScorer,
    instant_retry,
    make_store,
    scoring_payload,
)

CAPITOL_HILL = Coordinates(47.6150, -122.3210)

HEARTH = PlaceSummary("p-hearth", "Hearth Coffee", SEATTLE.lat, SEATTLE.lng)
QUIET_CUP = PlaceSummary("p-quiet", "Quiet Cup Cafe", SEATTLE.lat, SEATTLE.lng)
LIVELY = PlaceSummary("p-lively", "Lively Espresso", CAPITOL_HILL.lat, CAPITOL_HILL.lng)

PAYLOADS = {
    # cozy 0.9, wifi 0.9 -> 0.4*0.9 + 0.3*0.9 + 0.2*1 + 0.1*1 = 0.93
    "Hearth Coffee": scoring_payload({"cozy": 0.9}, {"wifi": 0.9}),
    # cozy via quiet 0.8*0.75, wifi neutral -> 0.4*0.6 + 0.3*0.45 + 0.2 + 0.1 = 0.675
    "Quiet Cup Cafe": scoring_payload({"quiet": 0.8}),
    # Nothing confident, about 1.3 km away -> well under 0.6
}


def seattle_places(**kwargs) -> FakePlaceProvider:
    return FakePlaceProvider(places=[LIVELY, QUIET_CUP, HEARTH], **kwargs)


def run(scenario, places, scorer=None, fast=None, **overrides):
    """Build a service over a fresh store, run scenario(service), dispose the store."""

    async def wrapper():
        store = await make_store()
        cache = CacheCoordinator(
            fast_store=fast if fast is not None else FakeFastStore(),
            durable_store=store,
            fast_ttl=3600,
            search_ttl=86400,
            analysis_ttl=604800,
            clock=FakeClock(),
        )
        analysis = AnalysisOrchestrator(
            scorer=scorer or FakeTextScorer(PAYLOADS),
            cache=cache,
            retry_policy=instant_retry(),
            batch_size=3,
            min_review_chars=50,
            max_reviews=3,
            review_char_budget=150,
        )
        options = {
            "search_radius_meters": 5000,
            "max_preferred_distance_meters": 2000,
            "top_n": 2,
            "pool_size": 5,
            "timeout": 5,
            "require_analysis": False,
        }
        options.update(overrides)
        service = RecommendationService(
            places=places, store=store, cache=cache, analysis=analysis, **options
        )
        try:
            return await scenario(service)
        finally:
            await store.close()

    return asyncio.run(wrapper())


def names(scored) -> list[str]:
    return [s.cafe.name for s in scored]


def test_recommendations_are_ranked_by_combined_score():
    places = seattle_places()

    result = run(
        lambda service: service.recommend("Seattle, WA", VibeCategory.COZY, None, [AmenityType.WIFI]),
        places,
    )

    assert result.coordinates == SEATTLE
    assert result.cache_hit is False
    assert names(result.recommendations) == ["Hearth Coffee", "Quiet Cup Cafe"]
    assert names(result.other_options) == ["Lively Espresso"]

    hearth, quiet = result.recommendations
    assert hearth.combined_score == pytest.approx(0.93)
    assert quiet.vibe_score == pytest.approx(0.6)
    assert quiet.amenity_score == pytest.approx(0.45)
    assert quiet.combined_score == pytest.approx(0.675)
    assert all(cafe.cafe.id for cafe in result.recommendations)

    (lively,) = result.other_options
    assert lively.vibe_score == pytest.approx(0.3)
    assert 1000 < lively.distance_meters < 1600


def test_second_request_is_served_from_cache():
    places = seattle_places()
    scorer = FakeTextScorer(PAYLOADS)

    async def scenario(service):
        first = await service.recommend("Seattle, WA", "cozy", requirements=["wifi"])
        second = await service.recommend("Seattle, WA", "cozy", requirements=["wifi"])
        return first, second

    first, second = run(scenario, places, scorer)

    assert second.cache_hit is True
    assert len(places.search_calls) == 1
    # Analyses are recent, including the one with no confident category.
    assert len(scorer.calls) == 3
    assert names(second.recommendations) == names(first.recommendations)


def test_price_tier_is_passed_to_search():
    places = seattle_places()

    run(lambda service: service.recommend("Seattle, WA", "cozy", PriceTier.MID), places)

    assert places.search_calls == [(SEATTLE.lat, SEATTLE.lng, 5000, PriceTier.MID)]


def test_non_cafe_places_are_filtered_out():
    pizza = PlaceSummary("p-pizza", "Pizza Palace", SEATTLE.lat, SEATTLE.lng)
    places = FakePlaceProvider(places=[pizza, HEARTH])

    result = run(lambda service: service.recommend("Seattle, WA", "cozy"), places)

    assert "p-pizza" not in places.detail_calls
    assert names(result.recommendations) == ["Hearth Coffee"]


def test_is_probable_cafe():
    assert is_probable_cafe("Cafe & Restaurant")
    assert is_probable_cafe("Victrola")
    assert not is_probable_cafe("Tony's Burger Shack")


def test_detail_failure_skips_only_that_cafe():
    places = seattle_places(details={"p-quiet": UpstreamError("HTTP 500", status_code=500)})

    result = run(lambda service: service.recommend("Seattle, WA", "cozy"), places)

    assert names(result.recommendations + result.other_options) == [
        "Hearth Coffee",
        "Lively Espresso",
    ]


def test_failed_analysis_is_scored_neutrally():
    places = seattle_places()
    scorer = FakeTextScorer({**PAYLOADS, "Lively Espresso": UpstreamError("HTTP 500")})

    result = run(lambda service: service.recommend("Seattle, WA", "cozy"), places, scorer)

    assert names(result.other_options) == ["Lively Espresso"]
    assert result.other_options[0].vibe_score == pytest.approx(0.3)


def test_failed_analysis_is_dropped_when_analysis_required():
    places = seattle_places()
    scorer = FakeTextScorer({**PAYLOADS, "Lively Espresso": UpstreamError("HTTP 500")})

    result = run(
        lambda service: service.recommend("Seattle, WA", "cozy"),
        places,
        scorer,
        require_analysis=True,
    )

    assert names(result.recommendations) == ["Hearth Coffee", "Quiet Cup Cafe"]
    assert result.other_options == []


def test_top_n_and_pool_size_split():
    places = seattle_places()

    result = run(
        lambda service: service.recommend("Seattle, WA", "cozy"), places, top_n=1, pool_size=1
    )

    assert names(result.recommendations) == ["Hearth Coffee"]
    assert names(result.other_options) == ["Quiet Cup Cafe"]


def test_empty_search_is_not_found():
    with pytest.raises(NotFoundError):
        run(lambda service: service.recommend("Seattle, WA", "cozy"), FakePlaceProvider())


def test_unknown_location_is_geocoding_error():
    with pytest.raises(GeocodingError):
        run(lambda service: service.recommend("Atlantis", "cozy"), seattle_places())


@pytest.mark.parametrize(
    "location, mood, requirements",
    [("   ", "cozy", []), ("Seattle, WA", "sleepy", []), ("Seattle, WA", "cozy", ["jacuzzi"])],
)
def test_invalid_requests_are_rejected(location, mood, requirements):
    places = seattle_places()

    with pytest.raises(InvalidRequestError):
        run(
            lambda service: service.recommend(location, mood, requirements=requirements),
            places,
        )
    assert places.search_calls == []


def test_slow_request_times_out():
    class SlowPlaceProvider(FakePlaceProvider):
        async def search_nearby(self, lat, lng, radius_meters, price_tier=None):
            await asyncio.sleep(1)
            return await super().search_nearby(lat, lng, radius_meters, price_tier)

    with pytest.raises(RecommendationTimeoutError):
        run(
            lambda service: service.recommend("Seattle, WA", "cozy"),
            SlowPlaceProvider(places=[HEARTH]),
            timeout=0.05,
        )


def test_fast_tier_outage_does_not_fail_requests():
    result = run(
        lambda service: service.recommend("Seattle, WA", "cozy"),
        seattle_places(),
        fast=FakeFastStore(fail=True),
    )

    assert names(result.recommendations) == ["Hearth Coffee", "Quiet Cup Cafe"]


def test_clear_cache_forces_a_new_search():
    places = seattle_places()

    async def scenario(service):
        await service.recommend("Seattle, WA", "cozy")
        cleared = await service.clear_cache()
        again = await service.recommend("Seattle, WA", "cozy")
        return cleared, again

    cleared, again = run(scenario, places)

    assert cleared > 0
    assert again.cache_hit is False
    assert len(places.search_calls) == 2


def test_validate_location_and_health():
    async def scenario(service):
        return await service.validate_location(" Seattle, WA "), await service.is_healthy()

    coordinates, healthy = run(scenario, seattle_places())

    assert coordinates == SEATTLE
    assert healthy is True


def test_unexpected_detail_error_skips_only_that_cafe():
    places = seattle_places(details={"p-quiet": ValueError("unreadable place payload")})

    result = run(lambda service: service.recommend("Seattle, WA", "cozy"), places)

    assert names(result.recommendations + result.other_options) == [
        "Hearth Coffee",
        "Lively Espresso",
    ]


def test_failed_nearby_search_propagates():
    class DownPlaceProvider(FakePlaceProvider):
        async def search_nearby(self, lat, lng, radius_meters, price_tier=None):
            raise RetryExhaustedError("Gave up after 3 attempts: slow down", attempts=3)

    with pytest.raises(UpstreamError):
        run(lambda service: service.recommend("Seattle, WA", "cozy"), DownPlaceProvider())
