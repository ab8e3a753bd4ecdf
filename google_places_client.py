#!/usr/bin/env python3
"""
Lightweight Google Places (Web Service) async client built on httpx.
Supports:
- Geocoding an address/location text to a Coordinate
- Text Search for places with keyword + optional location bias + radius
- Nearby Search around a coordinate (keyword / type filter)
- Place Details (to enrich leads with phone/website/opening hours)

Notes
- Uses legacy Places Web Service endpoints; every search response has the shape
  {results: [...], next_page_token?: str, status: str, error_message?: str}.
- Status "OK" and "ZERO_RESULTS" are successes, anything else raises ProviderError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from leads_models import Coordinate
from maps_config import Settings, get_settings, mask_api_key

logger = logging.getLogger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GOOGLE_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
GOOGLE_NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
GOOGLE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
GOOGLE_PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

DETAILS_FIELDS = (
    "name,place_id,formatted_address,address_components,geometry,"
    "formatted_phone_number,international_phone_number,website,editorial_summary,"
    "opening_hours,types,rating,user_ratings_total,price_level,business_status"
)

SUCCESS_STATUSES = frozenset({"OK", "ZERO_RESULTS"})
NEARBY_MAX_RADIUS_METERS = 50000


class PlacesError(RuntimeError):
    """Google returned a non-successful status."""

    def __init__(self, status: str, message: Optional[str] = None) -> None:
        self.status = status
        self.message = message
        text = f"Google Maps API error: {status}"
        if message:
            text = f"{text} - {message}"
        super().__init__(text)


class GeocodeError(PlacesError):
    """Location text could not be turned into a coordinate."""


class ProviderError(PlacesError):
    """Places search/details call failed with a provider status."""


class PlaceSearchProvider(Protocol):
    """What the lead search orchestrator needs from a places backend."""

    async def geocode(self, location_text: str) -> Coordinate:
        ...

    async def text_search(
        self,
        query: str,
        *,
        location: Optional[Coordinate] = None,
        radius_meters: Optional[float] = None,
        pagetoken: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...

    async def nearby_search(
        self,
        location: Coordinate,
        radius_meters: float,
        *,
        keyword: Optional[str] = None,
        place_type: Optional[str] = None,
        pagetoken: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...

    async def place_details(self, place_id: str) -> Dict[str, Any]:
        ...


def check_search_status(data: Dict[str, Any], operation: str) -> Dict[str, Any]:
    status = data.get("status") or "UNKNOWN_ERROR"
    if status not in SUCCESS_STATUSES:
        logger.error("%s failed: status=%s, error_message=%s", operation, status, data.get("error_message"))
        raise ProviderError(status, data.get("error_message"))
    return data


class GooglePlacesClient:
    """Minimal async client around Google Geocoding + Places Text/Nearby Search + Details APIs."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.require_api_key()
        self.language = self.settings.language
        self._client = http_client or httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)
        logger.debug("GooglePlacesClient using key %s", mask_api_key(self.api_key))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GooglePlacesClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {**params, "key": self.api_key}
        resp = await self._client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()

    async def geocode(self, location_text: str) -> Coordinate:
        """Geocode a free-form address/location. Raises GeocodeError if not found."""
        data = await self._get_json(
            GOOGLE_GEOCODE_URL,
            {"address": location_text.strip(), "language": self.language},
        )
        status = data.get("status") or "UNKNOWN_ERROR"
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning("Geocoding %r failed: status=%s", location_text, status)
            raise GeocodeError(status, data.get("error_message"))
        loc = results[0]["geometry"]["location"]
        return Coordinate(latitude=float(loc["lat"]), longitude=float(loc["lng"]))

    async def text_search(
        self,
        query: str,
        *,
        location: Optional[Coordinate] = None,
        radius_meters: Optional[float] = None,
        pagetoken: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Call Places Text Search. A bare pagetoken fetches the next page of an earlier query."""
        params: Dict[str, Any] = {"language": self.language}
        if query:
            params["query"] = query
        if location is not None:
            params["location"] = location.as_param()
        if radius_meters is not None:
            params["radius"] = int(radius_meters)
        if pagetoken:
            params["pagetoken"] = pagetoken

        data = await self._get_json(GOOGLE_TEXT_SEARCH_URL, params)
        return check_search_status(data, "text_search")

    async def nearby_search(
        self,
        location: Coordinate,
        radius_meters: float,
        *,
        keyword: Optional[str] = None,
        place_type: Optional[str] = None,
        pagetoken: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Call Places Nearby Search around `location`."""
        params: Dict[str, Any] = {
            "location": location.as_param(),
            "radius": int(min(radius_meters, NEARBY_MAX_RADIUS_METERS)),
            "language": self.language,
        }
        if keyword:
            params["keyword"] = keyword
        if place_type:
            params["type"] = place_type
        if pagetoken:
            params["pagetoken"] = pagetoken

        data = await self._get_json(GOOGLE_NEARBY_SEARCH_URL, params)
        return check_search_status(data, "nearby_search")

    async def place_details(self, place_id: str) -> Dict[str, Any]:
        """Get the full `result` object for a place."""
        if not place_id:
            raise ValueError("place_id is required")
        data = await self._get_json(
            GOOGLE_DETAILS_URL,
            {"place_id": place_id, "fields": DETAILS_FIELDS, "language": self.language},
        )
        status = data.get("status") or "UNKNOWN_ERROR"
        if status != "OK":
            logger.error("place_details failed: status=%s, error_message=%s", status, data.get("error_message"))
            raise ProviderError(status, data.get("error_message"))
        result = data.get("result")
        if not result:
            raise ProviderError(status, "No result data returned")
        return result

    def photo_url(self, photo_reference: str, max_width: int = 400) -> str:
        return str(
            httpx.URL(
                GOOGLE_PHOTO_URL,
                params={"maxwidth": max_width, "photoreference": photo_reference, "key": self.api_key},
            )
        )
