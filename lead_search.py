#!/usr/bin/env python3
"""
Lead search orchestration on top of a PlaceSearchProvider.

Direct mode returns one page (nearby search around the geocoded center, text
search when geocoding fails) and hands the provider's next_page_token back to
the caller. Grid mode sweeps every (query variant x grid point) cell, follows
each cell's pages to exhaustion and merges everything into one list where the
first occurrence of a place_id wins.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, NamedTuple, Optional

from google_places_client import GeocodeError, PlaceSearchProvider
from grid_generator import LARGE_RADIUS_THRESHOLD_METERS, generate_grid_points, sub_search_radius
from leads_models import Coordinate, PlaceRecord, SearchResultSet, SearchSpec
from maps_config import Settings, get_settings
from place_mapper import parse_search_results, to_full_record

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

REAL_ESTATE_HINTS = ("real estate", "realtor", "realty", "estate agent", "property management", "property manager")
MAX_REMEMBERED_TOKENS = 256
REAL_ESTATE_QUERIES = [
    "real estate agents",
    "realtors",
    "real estate agency",
    "real estate brokers",
    "property management",
    "real estate offices",
    "homes for sale",
]


def dedup_by_place_id(records: Iterable[PlaceRecord]) -> List[PlaceRecord]:
    """Keep the first record of every place_id, preserving order."""
    seen: Dict[str, PlaceRecord] = {}
    for record in records:
        if record.place_id not in seen:
            seen[record.place_id] = record
    return list(seen.values())


def expand_category_queries(business_type: str, radius_meters: float) -> List[str]:
    """Synonym queries for real-estate searches over a very large radius; otherwise the term itself."""
    term = business_type.strip()
    low = term.lower()
    terms = [term]
    if radius_meters > LARGE_RADIUS_THRESHOLD_METERS and any(k in low for k in REAL_ESTATE_HINTS):
        terms.extend(REAL_ESTATE_QUERIES)
    # unique while keeping order
    seen = set()
    out = []
    for t in terms:
        if t.lower() not in seen:
            seen.add(t.lower())
            out.append(t)
    return out


def build_text_query(spec: SearchSpec) -> str:
    """Free-text query used when there is no coordinate to search around."""
    if spec.category:
        return f"{spec.business_type} {spec.category} in {spec.location_text}"
    return f"{spec.business_type} in {spec.location_text}"


class _PageSource(NamedTuple):
    endpoint: str
    location: Optional[Coordinate] = None
    radius_meters: Optional[float] = None
    keyword: Optional[str] = None
    place_type: Optional[str] = None


@dataclass
class CellOutcome:
    records: List[PlaceRecord] = field(default_factory=list)
    pages: int = 0
    failed: bool = False
    skipped: bool = False


class LeadSearchOrchestrator:
    """Runs searches, grid sweeps, pagination and detail enrichment."""

    def __init__(
        self,
        provider: PlaceSearchProvider,
        *,
        settings: Optional[Settings] = None,
        page_token_delay_seconds: Optional[float] = None,
        max_results_per_query: Optional[int] = None,
        details_limit: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        settings = settings or get_settings()
        self.provider = provider
        self.page_token_delay_seconds = (
            settings.page_token_delay_seconds if page_token_delay_seconds is None else page_token_delay_seconds
        )
        self.max_results_per_query = (
            settings.max_results_per_query if max_results_per_query is None else max_results_per_query
        )
        self.details_limit = settings.details_limit if details_limit is None else details_limit
        self.max_concurrency = max(1, settings.max_concurrency if max_concurrency is None else max_concurrency)
        self.rng = rng
        self._sleep = sleep
        self._page_sources: OrderedDict[str, _PageSource] = OrderedDict()

    @property
    def max_pages_per_query(self) -> int:
        return max(1, -(-self.max_results_per_query // PAGE_SIZE))

    async def search(self, spec: SearchSpec, cancel_event: Optional[asyncio.Event] = None) -> SearchResultSet:
        if spec.use_grid_search:
            return await self._grid_search(spec, cancel_event)
        return await self._direct_search(spec)

    async def load_more(self, continuation_token: str) -> SearchResultSet:
        """Fetch the page behind a token returned by a direct-mode search."""
        if not continuation_token:
            raise ValueError("continuation_token is required")

        source = self._page_sources.pop(continuation_token, _PageSource("text"))
        await self._sleep(self.page_token_delay_seconds)
        data = await self._fetch_page(source, continuation_token)

        records = await self._enrich(dedup_by_place_id(parse_search_results(data)))
        next_token = self._remember_token(data, source)
        logger.info("Loaded %d more places (more=%s)", len(records), bool(next_token))
        return SearchResultSet(places=records, continuation_token=next_token)

    async def get_details(self, place_id: str) -> PlaceRecord:
        result = await self.provider.place_details(place_id)
        return to_full_record(result)

    async def _direct_search(self, spec: SearchSpec) -> SearchResultSet:
        try:
            center = await self.provider.geocode(spec.location_text)
        except GeocodeError as exc:
            logger.warning(
                "Geocoding %r failed (%s); falling back to text search", spec.location_text, exc.status
            )
            source = _PageSource("text")
            data = await self.provider.text_search(build_text_query(spec), radius_meters=spec.radius_meters)
        else:
            source = _PageSource("nearby", center, spec.radius_meters, spec.business_type, spec.category)
            data = await self._fetch_page(source)

        records = await self._enrich(dedup_by_place_id(parse_search_results(data)))
        next_token = self._remember_token(data, source)
        logger.info("Direct search %r returned %d places", spec.business_type, len(records))
        return SearchResultSet(places=records, continuation_token=next_token)

    async def _grid_search(self, spec: SearchSpec, cancel_event: Optional[asyncio.Event]) -> SearchResultSet:
        center = await self.provider.geocode(spec.location_text)
        queries = expand_category_queries(spec.business_type, spec.radius_meters)
        points = generate_grid_points(center, spec.radius_meters, spec.grid_size, rng=self.rng)
        cell_radius = sub_search_radius(spec.radius_meters, spec.grid_size)
        logger.info(
            "Grid sweep: %d queries x %d points, sub-search radius %.0fm",
            len(queries), len(points), cell_radius,
        )

        merged: Dict[str, PlaceRecord] = {}
        failed_cells = 0
        for query in queries:
            if _is_set(cancel_event):
                break
            outcomes = await self._run_cells(query, points, cell_radius, spec.category, cancel_event)
            for index, outcome in enumerate(outcomes):
                if outcome.failed:
                    failed_cells += 1
                for record in outcome.records:
                    if record.place_id not in merged:
                        merged[record.place_id] = record
                logger.debug("Cell %d (%r): %d places over %d pages", index, query, len(outcome.records), outcome.pages)

        cancelled = _is_set(cancel_event)
        if cancelled:
            logger.info("Grid sweep cancelled; returning %d places collected so far", len(merged))
            places = list(merged.values())
        else:
            places = await self._enrich(list(merged.values()))
        logger.info("Grid sweep finished: %d unique places, %d failed cells", len(places), failed_cells)
        return SearchResultSet(places=places, continuation_token=None, cancelled=cancelled, failed_cells=failed_cells)

    async def _run_cells(
        self,
        query: str,
        points: List[Coordinate],
        radius_meters: float,
        place_type: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> List[CellOutcome]:
        if self.max_concurrency == 1:
            outcomes: List[CellOutcome] = []
            for index, point in enumerate(points):
                if _is_set(cancel_event):
                    break
                outcomes.append(await self._search_cell(index, query, point, radius_meters, place_type, cancel_event))
            return outcomes

        # Bound parallelism to stay under the provider rate limit; gather keeps cell order.
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(index: int, point: Coordinate) -> CellOutcome:
            async with semaphore:
                if _is_set(cancel_event):
                    return CellOutcome(skipped=True)
                return await self._search_cell(index, query, point, radius_meters, place_type, cancel_event)

        return list(await asyncio.gather(*(run(i, p) for i, p in enumerate(points))))

    async def _search_cell(
        self,
        index: int,
        query: str,
        point: Coordinate,
        radius_meters: float,
        place_type: Optional[str],
        cancel_event: Optional[asyncio.Event],
    ) -> CellOutcome:
        outcome = CellOutcome()
        source = _PageSource("nearby", point, radius_meters, query, place_type)
        token: Optional[str] = None
        while True:
            if token:
                await self._sleep(self.page_token_delay_seconds)
            try:
                data = await self._fetch_page(source, token)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Sub-search %d (%r) failed on page %d: %s", index, query, outcome.pages + 1, exc)
                outcome.failed = True
                return outcome

            outcome.records.extend(parse_search_results(data))
            outcome.pages += 1
            token = data.get("next_page_token")
            if not token or outcome.pages >= self.max_pages_per_query or _is_set(cancel_event):
                return outcome

    async def _fetch_page(self, source: _PageSource, token: Optional[str] = None) -> Dict:
        if source.endpoint == "nearby" and source.location is not None:
            return await self.provider.nearby_search(
                source.location,
                source.radius_meters or 0,
                keyword=source.keyword,
                place_type=source.place_type,
                pagetoken=token,
            )
        return await self.provider.text_search("", pagetoken=token)

    def _remember_token(self, data: Dict, source: _PageSource) -> Optional[str]:
        token = data.get("next_page_token")
        if token:
            self._page_sources[token] = source
            # Keep only the newest tokens.
            while len(self._page_sources) > MAX_REMEMBERED_TOKENS:
                self._page_sources.popitem(last=False)
        return token

    async def _enrich(self, records: List[PlaceRecord]) -> List[PlaceRecord]:
        """Replace the first `details_limit` records with Place Details; failures keep the list record."""
        head = records[: self.details_limit]
        if not head:
            return records

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def enrich(record: PlaceRecord) -> PlaceRecord:
            async with semaphore:
                try:
                    detailed = await self.get_details(record.place_id)
                except Exception as exc:  # noqa: BLE001
                    logger.warning("Failed to fetch details for %s: %s", record.place_id, exc)
                    return record
                if detailed.place_id != record.place_id:
                    logger.warning("Details for %s came back as %s; keeping list record", record.place_id, detailed.place_id)
                    return record
                return detailed

        enriched = await asyncio.gather(*(enrich(r) for r in head))
        return list(enriched) + records[len(head):]


def _is_set(event: Optional[asyncio.Event]) -> bool:
    return event is not None and event.is_set()
