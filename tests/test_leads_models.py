import pytest
from pydantic import ValidationError

from leads_models import Coordinate, PlaceRecord, SearchResultSet, SearchSpec


def test_from_query_splits_type_and_location():
    spec = SearchSpec.from_query("coffee shops near Miami", radius_meters=2000)
    assert spec.business_type == "coffee shops"
    assert spec.location_text == "Miami"
    assert spec.radius_meters == 2000
    assert spec.use_grid_search is False


def test_spec_validation():
    with pytest.raises(ValidationError):
        SearchSpec(business_type="cafes", location_text="Miami", radius_meters=0)
    with pytest.raises(ValidationError):
        SearchSpec(business_type="cafes", location_text="Miami", grid_size=0)
    with pytest.raises(ValidationError):
        SearchSpec(business_type=" ", location_text="Miami")


def test_models_are_immutable():
    spec = SearchSpec(business_type="cafes", location_text="Miami")
    with pytest.raises(ValidationError):
        spec.radius_meters = 10
    result = SearchResultSet(places=[PlaceRecord(place_id="a")])
    with pytest.raises(ValidationError):
        result.continuation_token = "x"
    assert result.total == 1


def test_coordinate_param_format():
    assert Coordinate(latitude=25.7617, longitude=-80.1918).as_param() == "25.7617000,-80.1918000"
