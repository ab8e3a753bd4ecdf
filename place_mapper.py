#!/usr/bin/env python3
"""
Map raw Google Places (legacy web service) payloads to PlaceRecord.

List responses (text/nearby search) give a partial record; Place Details
responses carry phone, website, address components and opening hours.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from leads_models import Coordinate, PlaceRecord

GOOGLE_MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"

_DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def format_category(category: str) -> str:
    """'point_of_interest' -> 'Point Of Interest'."""
    return " ".join(word[:1].upper() + word[1:] for word in category.split("_"))


def google_maps_url(place_id: str) -> str:
    return GOOGLE_MAPS_PLACE_URL.format(place_id=place_id)


def _format_time(value: str) -> str:
    if len(value) != 4:
        return value
    return f"{value[:2]}:{value[2:]}"


def parse_opening_hours(opening_hours: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not opening_hours:
        return None
    hours: Dict[str, Any] = {"is_open_now": opening_hours.get("open_now")}
    for period in opening_hours.get("periods") or []:
        opened = period.get("open") or {}
        day = opened.get("day")
        if not isinstance(day, int) or not 0 <= day < len(_DAY_NAMES):
            continue
        closed = period.get("close") or {}
        hours[_DAY_NAMES[day]] = {
            "open": _format_time(str(opened.get("time", ""))),
            "close": _format_time(str(closed["time"])) if closed.get("time") else None,
            "is_closed": False,
        }
    return hours


def parse_address_components(components: List[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    street = ""
    out: Dict[str, Optional[str]] = {
        "address": None, "address2": None, "city": None,
        "state": None, "postal_code": None, "country": None,
    }
    for comp in components:
        types = comp.get("types") or []
        long_name = comp.get("long_name")
        if "street_number" in types:
            street = long_name or ""
        elif "route" in types:
            street = f"{street} {long_name}" if street else (long_name or "")
        elif "subpremise" in types:
            out["address2"] = long_name
        elif "locality" in types or "sublocality" in types:
            out["city"] = long_name
        elif "administrative_area_level_1" in types:
            out["state"] = comp.get("short_name")
        elif "postal_code" in types:
            out["postal_code"] = long_name
        elif "country" in types:
            out["country"] = long_name
    out["address"] = street or None
    return out


def parse_formatted_address(formatted_address: str) -> Dict[str, Optional[str]]:
    """Best effort split of '123 Main St, Springfield, IL 62701, USA'."""
    out: Dict[str, Optional[str]] = {
        "address": None, "address2": None, "city": None,
        "state": None, "postal_code": None, "country": None,
    }
    parts = [p.strip() for p in formatted_address.split(",")]
    if len(parts) >= 3:
        out["address"] = parts[0] or None
        out["city"] = parts[1] or None
        state_zip = parts[2].split()
        if len(state_zip) >= 2:
            out["state"] = state_zip[0]
            out["postal_code"] = state_zip[1]
        if len(parts) > 3:
            out["country"] = parts[3] or None
    return out


def _coordinate(place: Dict[str, Any]) -> Optional[Coordinate]:
    loc = (place.get("geometry") or {}).get("location") or {}
    lat, lng = loc.get("lat"), loc.get("lng")
    if lat is None or lng is None:
        return None
    return Coordinate(latitude=float(lat), longitude=float(lng))


def _base_fields(place: Dict[str, Any]) -> Dict[str, Any]:
    place_id = place.get("place_id")
    if not place_id:
        raise ValueError("Place payload has no place_id")

    categories = [format_category(t) for t in place.get("types") or []]
    summary = (place.get("editorial_summary") or {}).get("overview")
    rating_total = place.get("user_ratings_total")
    return {
        "place_id": place_id,
        "name": place.get("name") or "",
        "coordinate": _coordinate(place),
        "category": categories[0] if categories else None,
        "categories": categories,
        "rating": place.get("rating"),
        "review_count": int(rating_total) if rating_total is not None else None,
        "price_level": place.get("price_level"),
        "business_status": place.get("business_status"),
        "phone": place.get("formatted_phone_number") or place.get("international_phone_number") or None,
        "website": place.get("website") or None,
        "formatted_address": place.get("formatted_address") or place.get("vicinity"),
        "description": summary or (", ".join(categories) or None),
        "google_maps_url": google_maps_url(place_id),
    }


def to_partial_record(place: Dict[str, Any]) -> PlaceRecord:
    """Record from a text/nearby search result item."""
    return PlaceRecord(**_base_fields(place))


def to_full_record(place: Dict[str, Any]) -> PlaceRecord:
    """Record from a Place Details `result` object."""
    fields = _base_fields(place)
    components = place.get("address_components") or []
    if components:
        fields.update(parse_address_components(components))
    elif place.get("formatted_address"):
        fields.update(parse_formatted_address(place["formatted_address"]))
    fields["opening_hours"] = parse_opening_hours(place.get("opening_hours"))
    fields["has_details"] = True
    return PlaceRecord(**fields)


def parse_search_results(payload: Dict[str, Any]) -> List[PlaceRecord]:
    """All usable records of a search response; items without place_id are skipped."""
    return [to_partial_record(item) for item in payload.get("results") or [] if item.get("place_id")]
