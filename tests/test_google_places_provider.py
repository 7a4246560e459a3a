"""
Tests for the Google Maps place provider, with a mocked HTTP transport.
"""

import asyncio
import dataclasses

import httpx
import pytest

from quickcafe.entities import Coordinates, PriceTier
from quickcafe.errors import GeocodingError, RetryExhaustedError, UpstreamError
from quickcafe.repositories import GooglePlacesProvider

from conftest import SleepRecorder, instant_retry

BASE_URL = "https://maps.test/api"


def make_provider(handler, sleep=None) -> GooglePlacesProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GooglePlacesProvider(
        api_key="test-key",
        base_url=BASE_URL,
        retry_policy=instant_retry(3, sleep),
        client=client,
    )


def test_geocode_returns_first_result():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/geocode/json"
        assert request.url.params["address"] == "Seattle, WA"
        assert request.url.params["key"] == "test-key"
        return httpx.Response(
            200,
            json={"status": "OK", "results": [{"geometry": {"location": {"lat": 47.6, "lng": -122.3}}}]},
        )

    provider = make_provider(handler)
    assert asyncio.run(provider.geocode("Seattle, WA")) == Coordinates(47.6, -122.3)


def test_geocode_without_results_raises():
    provider = make_provider(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS"}))

    with pytest.raises(GeocodingError):
        asyncio.run(provider.geocode("Atlantis"))


def test_search_nearby_params_and_results():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {
                        "place_id": "p1",
                        "name": "Victrola",
                        "geometry": {"location": {"lat": 47.61, "lng": -122.32}},
                    },
                    {"place_id": "broken"},
                ],
            },
        )

    provider = make_provider(handler)
    places = asyncio.run(provider.search_nearby(47.6, -122.3, 5000, PriceTier.MID))

    assert [(p.external_id, p.name) for p in places] == [("p1", "Victrola")]
    assert seen["type"] == "cafe"
    assert seen["keyword"] == "coffee cafe"
    assert seen["radius"] == "5000"
    assert seen["minprice"] == seen["maxprice"] == "2"


def test_search_nearby_zero_results_is_empty():
    provider = make_provider(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS"}))
    assert asyncio.run(provider.search_nearby(47.6, -122.3, 5000)) == []


def test_search_nearby_denied_is_upstream_error():
    provider = make_provider(lambda request: httpx.Response(200, json={"status": "REQUEST_DENIED"}))

    with pytest.raises(UpstreamError):
        asyncio.run(provider.search_nearby(47.6, -122.3, 5000))


def test_details_are_normalized():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["place_id"] == "p1"
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "result": {
                    "formatted_address": "310 E Pike St, Seattle",
                    "price_level": 2,
                    "reviews": [{"text": " Great espresso. "}, {"text": ""}, {"rating": 5}],
                    "opening_hours": {
                        "periods": [
                            {"open": {"day": 1, "time": "0700"}, "close": {"day": 1, "time": "1800"}},
                            {"open": {"day": 5, "time": "2000"}, "close": {"day": 6, "time": "0200"}},
                        ]
                    },
                    "photos": [
                        {"photo_reference": f"ref{i}", "width": 800, "height": 600} for i in range(5)
                    ],
                },
            },
        )

    details = asyncio.run(make_provider(handler).get_details("p1"))

    assert details.address == "310 E Pike St, Seattle"
    assert details.price_tier is PriceTier.MID
    assert details.reviews == ("Great espresso.",)
    assert details.hours == {"Monday": {"open": "07:00", "close": "18:00"}}
    assert len(details.photos) == 3
    assert details.photos[0].startswith(f"{BASE_URL}/place/photo?maxwidth=800&photoreference=ref0")


def test_details_without_price_or_hours():
    body = {"status": "OK", "result": {"formatted_address": "Somewhere", "price_level": 4}}
    details = asyncio.run(make_provider(lambda r: httpx.Response(200, json=body)).get_details("p"))

    assert details.price_tier is None
    assert details.hours is None
    assert details.photos == ()


def test_rate_limit_is_retried_then_succeeds():
    sleep = SleepRecorder()
    responses = [
        httpx.Response(429),
        httpx.Response(200, json={"status": "OVER_QUERY_LIMIT"}),
        httpx.Response(200, json={"status": "ZERO_RESULTS"}),
    ]

    provider = make_provider(lambda request: responses.pop(0), sleep)

    assert asyncio.run(provider.search_nearby(47.6, -122.3, 5000)) == []
    assert sleep.delays == [1.0, 2.0]


def test_network_errors_exhaust_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(RetryExhaustedError):
        asyncio.run(make_provider(handler).get_details("p1"))
    assert len(calls) == 3


def test_server_error_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(make_provider(handler).get_details("p1"))
    assert exc_info.value.status_code == 500
    assert len(calls) == 1


def test_api_key_is_required(monkeypatch):
    from quickcafe.repositories import google_places_provider

    monkeypatch.setattr(
        google_places_provider,
        "settings",
        dataclasses.replace(google_places_provider.settings, google_places_api_key=None),
    )
    with pytest.raises(ValueError):
        GooglePlacesProvider(api_key="")


def test_decoding_errors_are_retried_as_transient():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.DecodingError("bad gzip", request=request)

    with pytest.raises(RetryExhaustedError):
        asyncio.run(make_provider(handler).get_details("p1"))
    assert len(calls) == 3


def test_non_object_json_body_is_upstream_error():
    provider = make_provider(lambda request: httpx.Response(200, json=["OK"]))

    with pytest.raises(UpstreamError):
        asyncio.run(provider.geocode("Seattle, WA"))


def test_malformed_hours_and_photos_are_skipped():
    body = {
        "status": "OK",
        "result": {
            "formatted_address": "Somewhere",
            "opening_hours": {
                "periods": [
                    {"open": {"day": 2}, "close": {"day": 2, "time": "1700"}},
                    {"open": {"day": 3, "time": "7am"}, "close": {"day": 3, "time": "1700"}},
                    "always",
                    {"open": {"day": 4, "time": "0800"}, "close": {"day": 4, "time": "1600"}},
                ]
            },
            "photos": ["not-a-photo", {"width": 400}, {"photo_reference": "ok", "width": 400}],
        },
    }

    details = asyncio.run(make_provider(lambda r: httpx.Response(200, json=body)).get_details("p"))

    assert details.hours == {"Thursday": {"open": "08:00", "close": "16:00"}}
    assert details.photos == (f"{BASE_URL}/place/photo?maxwidth=400&photoreference=ok&key=test-key",)
