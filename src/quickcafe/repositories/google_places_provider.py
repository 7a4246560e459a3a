"""Google Maps implementation of PlaceProvider.

Uses the Geocoding API and the legacy Places web service (nearby search,
details, photos). Every call goes through the shared retry policy; throttling
and network failures are retried, anything else fails fast.

Requirements:
    - GOOGLE_PLACES_API_KEY with the Geocoding and Places APIs enabled
"""

import logging
from typing import Any

import httpx

from quickcafe.config import settings
from quickcafe.entities import Coordinates, PlaceDetails, PlaceSummary, PriceTier
from quickcafe.errors import (
    GeocodingError,
    RateLimitedError,
    TransientUpstreamError,
    UpstreamError,
)
from quickcafe.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


class GooglePlacesProvider:
    """Google Maps implementation of the PlaceProvider protocol.

    This class satisfies the PlaceProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = GooglePlacesProvider.create()
        center = await provider.geocode("Capitol Hill, Seattle")
        hits = await provider.search_nearby(center.lat, center.lng, 5000)
        details = await provider.get_details(hits[0].external_id)
        ```
    """

    DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
    DETAIL_FIELDS = "formatted_address,price_level,reviews,opening_hours,photos"
    MAX_PHOTOS = 3

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Google API key. Defaults to settings.google_places_api_key.
            base_url: Maps web service root. Defaults to settings.google_maps_base_url.
            timeout: Per-request timeout in seconds. Defaults to settings.request_timeout.
            retry_policy: Retry policy. Defaults to RetryPolicy.create().
            client: Preconfigured httpx client, mainly for tests.

        Raises:
            ValueError: If no API key is configured
        """
        self._api_key = api_key or settings.google_places_api_key
        if not self._api_key:
            raise ValueError("Google Places API key is required")
        self._base_url = (base_url or settings.google_maps_base_url).rstrip("/")
        self._timeout = timeout or settings.request_timeout
        self._retry = retry_policy or RetryPolicy.create()
        self._client = client

    @classmethod
    def create(cls, api_key: str | None = None) -> "GooglePlacesProvider":
        """Factory method to create GooglePlacesProvider with settings defaults."""
        return cls(api_key=api_key)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    async def geocode(self, text: str) -> Coordinates:
        """Resolve free text to coordinates.

        Raises:
            GeocodingError: If the API returns no result for the text
            UpstreamError: If the request itself failed
        """
        data = await self._get_json("geocode/json", {"address": text})
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            raise GeocodingError(f"No results found for location: {text}")

        try:
            location = results[0]["geometry"]["location"]
            return Coordinates(float(location["lat"]), float(location["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Malformed geocoding result for: {text}") from exc

    async def search_nearby(
        self,
        lat: float,
        lng: float,
        radius_meters: int,
        price_tier: PriceTier | None = None,
    ) -> list[PlaceSummary]:
        params: dict[str, Any] = {
            "location": f"{lat},{lng}",
            "radius": str(int(radius_meters)),
            "type": "cafe",
            "keyword": "coffee cafe",
        }
        if price_tier is not None:
            level = PriceTier(price_tier).level
            params["minprice"] = level
            params["maxprice"] = level

        data = await self._get_json("place/nearbysearch/json", params)
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise UpstreamError(f"Places nearby search failed: {status}")

        summaries = []
        for place in data.get("results") or []:
            try:
                location = place["geometry"]["location"]
                summaries.append(
                    PlaceSummary(
                        external_id=place["place_id"],
                        name=place["name"],
                        lat=float(location["lat"]),
                        lng=float(location["lng"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed nearby search result: %r", place)
        return summaries

    async def get_details(self, external_id: str) -> PlaceDetails:
        data = await self._get_json(
            "place/details/json",
            {"place_id": external_id, "fields": self.DETAIL_FIELDS},
        )
        result = data.get("result")
        if data.get("status") != "OK" or not isinstance(result, dict):
            raise UpstreamError(f"Place details failed for {external_id}: {data.get('status')}")

        texts = (
            review.get("text") for review in result.get("reviews") or [] if isinstance(review, dict)
        )
        reviews = tuple(text.strip() for text in texts if isinstance(text, str) and text.strip())
        return PlaceDetails(
            address=result.get("formatted_address") or "",
            reviews=reviews,
            price_tier=PriceTier.from_level(result.get("price_level")),
            hours=self._fold_hours(result.get("opening_hours")),
            photos=self._photo_urls(result.get("photos")),
        )

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _fold_hours(self, opening_hours: dict | None) -> dict[str, dict[str, str]] | None:
        """Fold opening-hour periods into ``{"Monday": {"open": "07:00", "close": "18:00"}}``.

        Periods that close on a later day are skipped.
        """
        if not isinstance(opening_hours, dict) or not isinstance(opening_hours.get("periods"), list):
            return None

        hours: dict[str, dict[str, str]] = {}
        for period in opening_hours["periods"]:
            try:
                opens, closes = period["open"], period["close"]
                if opens["day"] != closes["day"]:
                    continue
                day = self.DAYS[opens["day"]]
                hours[day] = {"open": _clock(opens["time"]), "close": _clock(closes["time"])}
            except (KeyError, IndexError, TypeError, ValueError):
                logger.debug("Ignoring malformed opening-hours period: %r", period)
        return hours or None

    def _photo_urls(self, photos: list | None) -> tuple[str, ...]:
        if not isinstance(photos, list):
            return ()

        urls = []
        for photo in photos[: self.MAX_PHOTOS]:
            reference = photo.get("photo_reference") if isinstance(photo, dict) else None
            if not reference:
                continue
            urls.append(
                f"{self._base_url}/place/photo?maxwidth={photo.get('width', 400)}"
                f"&photoreference={reference}&key={self._api_key}"
            )
        return tuple(urls)

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/{path}"

        async def attempt() -> dict[str, Any]:
            try:
                response = await self.client.get(url, params={**params, "key": self._api_key})
            except httpx.RequestError as exc:
                raise TransientUpstreamError(f"Google Maps request failed: {exc}") from exc

            if response.status_code == 429:
                raise RateLimitedError("Google Maps rate limit exceeded", status_code=429)
            if response.is_error:
                raise UpstreamError(
                    f"Google Maps error: HTTP {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                data = response.json()
            except ValueError as exc:
                raise UpstreamError("Google Maps returned invalid JSON") from exc
            if not isinstance(data, dict):
                raise UpstreamError("Google Maps returned a non-object JSON body")

            if data.get("status") == "OVER_QUERY_LIMIT":
                raise RateLimitedError("Google Maps query limit exceeded")
            return data

        return await self._retry.run(attempt)


def _clock(value: str) -> str:
    """'0730' -> '07:30'.

    Raises:
        ValueError: If value is not four digits
    """
    if not isinstance(value, str) or len(value) != 4 or not value.isdigit():
        raise ValueError(f"Invalid clock time: {value!r}")
    return f"{value[:2]}:{value[2:]}"
