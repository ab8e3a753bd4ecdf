#!/usr/bin/env python3
"""
MCP Server for Google Maps/Places Lead Generation

Tools:
- find_business_leads: "coffee shops in Miami" style search, optionally as a
  grid sweep that gets past the ~60 results per query ceiling
- load_more_leads: next page of a direct (non-grid) search
- get_place_details: full record for one place id
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

import httpx
from fastmcp import FastMCP
from pydantic import ValidationError

from access_policy import AuthorizationPolicy, policy_from_settings
from google_places_client import GooglePlacesClient, PlacesError
from lead_search import LeadSearchOrchestrator
from leads_models import SearchSpec
from maps_config import ConfigError, Settings, get_settings

logger = logging.getLogger(__name__)


app = FastMCP(
    name="maps-leads-mcp",
    instructions=(
        "Use find_business_leads to search Google Maps/Places for businesses with a query such as "
        "'dentists in Portland, OR' or a keyword plus location_text. Set use_grid_search=true for "
        "wide areas: the area is split into many smaller searches and merged without duplicates. "
        "Use load_more_leads with the returned continuation_token to page a normal search, and "
        "get_place_details to fetch phone/website/opening hours for one place_id."
    ),
)


def _principal_from_env() -> Optional[str]:
    return os.environ.get("MAPS_PRINCIPAL") or None


def _error(message: str, status: Optional[str] = None) -> Dict[str, Any]:
    return {"error": True, "status": status, "message": message}


class LeadSearchService:
    """Host side of the tools: authorization, spec building and error payloads."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        policy: Optional[AuthorizationPolicy] = None,
        orchestrator_factory: Optional[Callable[[Settings], LeadSearchOrchestrator]] = None,
        principal_resolver: Callable[[], Optional[str]] = _principal_from_env,
    ) -> None:
        self.settings = settings or get_settings()
        self.policy = policy or policy_from_settings(self.settings)
        self._orchestrator_factory = orchestrator_factory or self._default_orchestrator
        self._principal_resolver = principal_resolver
        self._orchestrator: Optional[LeadSearchOrchestrator] = None

    @staticmethod
    def _default_orchestrator(settings: Settings) -> LeadSearchOrchestrator:
        return LeadSearchOrchestrator(GooglePlacesClient(settings=settings), settings=settings)

    @property
    def orchestrator(self) -> LeadSearchOrchestrator:
        # One instance per process so continuation tokens resolve to the endpoint that issued them.
        if self._orchestrator is None:
            self._orchestrator = self._orchestrator_factory(self.settings)
        return self._orchestrator

    def _authorize(self) -> Optional[Dict[str, Any]]:
        if self.policy.is_allowed(self._principal_resolver()):
            return None
        return _error("Authentication required", status="UNAUTHENTICATED")

    async def find_leads(
        self,
        query: str,
        location_text: Optional[str] = None,
        radius_meters: Optional[float] = None,
        category: Optional[str] = None,
        use_grid_search: bool = False,
        grid_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        denied = self._authorize()
        if denied:
            return denied

        try:
            spec = SearchSpec.from_query(
                query,
                location_text=location_text,
                radius_meters=radius_meters or self.settings.default_radius_meters,
                category=category or None,
                use_grid_search=use_grid_search,
                grid_size=grid_size or self.settings.default_grid_size,
            )
        except ValidationError as e:
            logger.info("Rejected search request %r: %s", query, e)
            return _error("Query and location are required", status="INVALID_REQUEST")

        logger.info(
            "Searching %r in %r (radius=%.0f, grid=%s)",
            spec.business_type, spec.location_text, spec.radius_meters, spec.use_grid_search,
        )
        try:
            result = await self.orchestrator.search(spec)
        except (PlacesError, ConfigError) as e:
            logger.error("Search %r failed: %s", query, e)
            return _error(str(e), status=getattr(e, "status", None))
        except httpx.HTTPError as e:
            logger.error("Search %r failed: %s", query, e)
            return _error(str(e), status="HTTP_ERROR")

        return {
            **result.model_dump(mode="json"),
            "total": result.total,
            "query": spec.model_dump(mode="json"),
        }

    async def load_more(self, continuation_token: str) -> Dict[str, Any]:
        denied = self._authorize()
        if denied:
            return denied
        if not continuation_token:
            return _error("continuation_token is required", status="INVALID_REQUEST")
        try:
            result = await self.orchestrator.load_more(continuation_token)
        except (PlacesError, ConfigError) as e:
            logger.error("Loading more results failed: %s", e)
            return _error(str(e), status=getattr(e, "status", None))
        except httpx.HTTPError as e:
            logger.error("Loading more results failed: %s", e)
            return _error(str(e), status="HTTP_ERROR")
        return {**result.model_dump(mode="json"), "total": result.total}

    async def details(self, place_id: str) -> Dict[str, Any]:
        denied = self._authorize()
        if denied:
            return denied
        if not place_id:
            return _error("Place ID is required", status="INVALID_REQUEST")
        try:
            record = await self.orchestrator.get_details(place_id)
        except (PlacesError, ConfigError) as e:
            logger.error("Details for %s failed: %s", place_id, e)
            return _error(str(e), status=getattr(e, "status", None))
        except httpx.HTTPError as e:
            logger.error("Details for %s failed: %s", place_id, e)
            return _error(str(e), status="HTTP_ERROR")
        return {"business": record.model_dump(mode="json")}


_service: Optional[LeadSearchService] = None


def get_service() -> LeadSearchService:
    global _service
    if _service is None:
        _service = LeadSearchService()
    return _service


@app.tool()
async def find_business_leads(
    query: str,
    location_text: Optional[str] = None,
    radius_meters: Optional[float] = None,
    category: Optional[str] = None,
    use_grid_search: bool = False,
    grid_size: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Search Google Maps/Places for businesses and return deduplicated leads.

    - query: "coffee shops in Miami", or just "coffee shops" together with location_text
    - location_text: overrides the location parsed from query
    - radius_meters: search radius (default from MAPS_DEFAULT_RADIUS_METERS)
    - category: optional Places type filter, e.g. "restaurant"
    - use_grid_search: sweep a grid of smaller searches and merge them (slow, thorough)
    - grid_size: grid density; (2*grid_size+1)^2 cells for radii under ~100 miles
    """
    return await get_service().find_leads(
        query,
        location_text=location_text,
        radius_meters=radius_meters,
        category=category,
        use_grid_search=use_grid_search,
        grid_size=grid_size,
    )


@app.tool()
async def load_more_leads(continuation_token: str) -> Dict[str, Any]:
    """Fetch the next page for a continuation_token returned by find_business_leads."""
    return await get_service().load_more(continuation_token)


@app.tool()
async def get_place_details(place_id: str) -> Dict[str, Any]:
    """Full details (phone, website, address, opening hours) for one Google place_id."""
    return await get_service().details(place_id)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s",
    )
    app.run()


if __name__ == "__main__":
    main()
