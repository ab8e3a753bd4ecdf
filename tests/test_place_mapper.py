import pytest

from place_mapper import (
    format_category,
    parse_formatted_address,
    parse_opening_hours,
    parse_search_results,
    to_full_record,
    to_partial_record,
)

PLACE = {
    "place_id": "test_place_id",
    "name": "Test Business Name",
    "formatted_address": "123 Test St, Test City, TS 12345, USA",
    "address_components": [
        {"long_name": "123", "short_name": "123", "types": ["street_number"]},
        {"long_name": "Test St", "short_name": "Test St", "types": ["route"]},
        {"long_name": "Test City", "short_name": "Test City", "types": ["locality", "political"]},
        {"long_name": "Test County", "short_name": "Test County", "types": ["administrative_area_level_2", "political"]},
        {"long_name": "Test State", "short_name": "TS", "types": ["administrative_area_level_1", "political"]},
        {"long_name": "12345", "short_name": "12345", "types": ["postal_code"]},
        {"long_name": "United States", "short_name": "US", "types": ["country", "political"]},
    ],
    "geometry": {"location": {"lat": 37.7749, "lng": -122.4194}},
    "types": ["restaurant", "food", "point_of_interest", "establishment"],
    "rating": 4.5,
    "user_ratings_total": 100,
    "price_level": 2,
    "formatted_phone_number": "(555) 123-4567",
    "international_phone_number": "+1 555-123-4567",
    "website": "https://www.testbusiness.com",
    "editorial_summary": {"overview": "A great test business with excellent service.", "language": "en"},
    "opening_hours": {
        "open_now": True,
        "periods": [
            {"open": {"day": 1, "time": "0900"}, "close": {"day": 1, "time": "1730"}},
            {"open": {"day": 6, "time": "1000"}},
        ],
    },
}


def test_partial_record():
    record = to_partial_record(PLACE)
    assert record.place_id == "test_place_id"
    assert record.name == "Test Business Name"
    assert record.coordinate.latitude == 37.7749
    assert record.coordinate.longitude == -122.4194
    assert record.phone == "(555) 123-4567"
    assert record.website == "https://www.testbusiness.com"
    assert record.description == "A great test business with excellent service."
    assert record.category == "Restaurant"
    assert record.review_count == 100
    assert "test_place_id" in record.google_maps_url
    assert record.has_details is False
    assert record.city is None


def test_description_falls_back_to_categories():
    record = to_partial_record({**PLACE, "editorial_summary": None})
    assert record.description == "Restaurant, Food, Point Of Interest, Establishment"


def test_full_record_uses_address_components():
    record = to_full_record(PLACE)
    assert record.has_details is True
    assert record.formatted_address == "123 Test St, Test City, TS 12345, USA"
    assert record.address == "123 Test St"
    assert record.city == "Test City"
    assert record.state == "TS"
    assert record.postal_code == "12345"
    assert record.country == "United States"
    assert record.opening_hours["is_open_now"] is True
    assert record.opening_hours["monday"] == {"open": "09:00", "close": "17:30", "is_closed": False}
    assert record.opening_hours["saturday"]["close"] is None


def test_full_record_falls_back_to_formatted_address():
    place = {k: v for k, v in PLACE.items() if k != "address_components"}
    record = to_full_record(place)
    assert record.address == "123 Test St"
    assert record.city == "Test City"
    assert record.state == "TS"
    assert record.postal_code == "12345"
    assert record.country == "USA"


def test_parse_formatted_address_too_short():
    assert parse_formatted_address("Somewhere")["city"] is None


def test_phone_falls_back_to_international():
    record = to_partial_record({**PLACE, "formatted_phone_number": None})
    assert record.phone == "+1 555-123-4567"


def test_missing_place_id_raises():
    with pytest.raises(ValueError):
        to_partial_record({"name": "No id"})


def test_parse_search_results_skips_items_without_id():
    payload = {
        "status": "OK",
        "results": [
            {"place_id": "a", "name": "A", "vicinity": "1 Main St"},
            {"name": "missing id"},
            {"place_id": "b", "name": "B"},
        ],
    }
    records = parse_search_results(payload)
    assert [r.place_id for r in records] == ["a", "b"]
    assert records[0].formatted_address == "1 Main St"
    assert records[1].coordinate is None


def test_format_category():
    assert format_category("point_of_interest") == "Point Of Interest"
    assert format_category("cafe") == "Cafe"


def test_opening_hours_none():
    assert parse_opening_hours(None) is None
