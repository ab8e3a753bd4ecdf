#!/usr/bin/env python3
"""
Lead search models: search requests, coordinates and normalized place records
built from Google Places results.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    """A WGS84 point."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(description="Latitude in degrees")
    longitude: float = Field(description="Longitude in degrees")

    def as_param(self) -> str:
        """`lat,lng` string as expected by the Places `location` parameter."""
        return f"{self.latitude:.7f},{self.longitude:.7f}"


class ParsedQuery(BaseModel):
    """Natural-language query split into what to look for and where."""
    model_config = ConfigDict(frozen=True)

    business_type: str = Field(description="Business type / keyword, e.g. 'coffee shops'")
    location: str = Field(default="", description="Free-text location, empty when absent")


class SearchSpec(BaseModel):
    """Normalized search request; created once per submission."""
    model_config = ConfigDict(frozen=True)

    business_type: str = Field(description="Business type / keyword to search for")
    location_text: str = Field(description="Free-text location to geocode")
    radius_meters: float = Field(default=5000.0, gt=0, description="Search radius in meters")
    category: Optional[str] = Field(default=None, description="Optional Places type filter")
    use_grid_search: bool = Field(default=False, description="Sweep a grid of sub-searches")
    grid_size: int = Field(default=2, ge=1, description="Grid density parameter")

    @model_validator(mode="after")
    def _check_terms(self) -> "SearchSpec":
        if not self.business_type.strip():
            raise ValueError("business_type must not be empty")
        if not self.location_text.strip():
            raise ValueError("location_text must not be empty")
        return self

    @classmethod
    def from_query(
        cls,
        query: str,
        *,
        location_text: Optional[str] = None,
        **kwargs: Any,
    ) -> "SearchSpec":
        """Build a spec from "coffee shops in Miami"; an explicit location wins."""
        from query_parser import parse_query

        parsed = parse_query(query)
        location = (location_text or "").strip() or parsed.location
        return cls(business_type=parsed.business_type, location_text=location, **kwargs)


class PlaceRecord(BaseModel):
    """Single business / lead. `place_id` is its only identity."""
    model_config = ConfigDict(frozen=True)

    place_id: str = Field(description="Google Place ID")
    name: str = Field(default="", description="Business name")
    coordinate: Optional[Coordinate] = Field(default=None, description="Location")
    category: Optional[str] = Field(default=None, description="Primary category (Title Case)")
    categories: List[str] = Field(default_factory=list, description="All categories (Title Case)")
    rating: Optional[float] = Field(default=None, description="Rating")
    review_count: Optional[int] = Field(default=None, description="Number of ratings")
    price_level: Optional[int] = Field(default=None, description="Price level 0-4")
    business_status: Optional[str] = Field(default=None, description="Business status")
    phone: Optional[str] = Field(default=None, description="Phone (formatted or international)")
    website: Optional[str] = Field(default=None, description="Website")
    formatted_address: Optional[str] = Field(default=None, description="Google formatted address")
    address: Optional[str] = Field(default=None, description="Street line")
    address2: Optional[str] = Field(default=None, description="Suite / unit")
    city: Optional[str] = Field(default=None, description="City")
    state: Optional[str] = Field(default=None, description="State / region short code")
    postal_code: Optional[str] = Field(default=None, description="Postal code")
    country: Optional[str] = Field(default=None, description="Country")
    description: Optional[str] = Field(default=None, description="Editorial summary or categories")
    opening_hours: Optional[Dict[str, Any]] = Field(default=None, description="Per-day opening hours")
    google_maps_url: Optional[str] = Field(default=None, description="Link to the place on Google Maps")
    has_details: bool = Field(default=False, description="True when built from a Place Details response")


class SearchResultSet(BaseModel):
    """Result of one search or one 'load more' call."""
    model_config = ConfigDict(frozen=True)

    places: List[PlaceRecord] = Field(default_factory=list, description="Unique by place_id")
    continuation_token: Optional[str] = Field(default=None, description="Token for the next page")
    cancelled: bool = Field(default=False, description="Sweep was stopped before finishing")
    failed_cells: int = Field(default=0, description="Sub-searches that failed and were skipped")

    @property
    def total(self) -> int:
        return len(self.places)
