#!/usr/bin/env python3
"""
Sample points covering a circular search area.

A single Places query tops out at ~60 results, so a large radius is split into
many smaller sub-searches centered on the points produced here:

- below LARGE_RADIUS_THRESHOLD_METERS: a square lattice of (2*g+1)^2 points
- at or above it: the center, `g` concentric rings and 3*g random infill points
"""

from __future__ import annotations

import logging
import math
import random
from typing import List, Optional

from leads_models import Coordinate

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6378137.0
BASE_LARGE_RADIUS_METERS = 80467.0  # 50 miles
LARGE_RADIUS_THRESHOLD_METERS = 2 * BASE_LARGE_RADIUS_METERS

RING_DISTANCE_FACTOR = 0.8
RING_MIN_POINTS = 8
RING_MAX_POINTS = 16
RANDOM_POINTS_PER_GRID_STEP = 3
RANDOM_DISTANCE_RANGE = (0.3, 0.9)
# Longitude degrees per meter blow up at the poles.
MAX_ABS_LATITUDE = 89.0


def meters_to_lat_degrees(meters: float) -> float:
    return meters / EARTH_RADIUS_METERS * 180.0 / math.pi


def meters_to_lng_degrees(meters: float, latitude: float) -> float:
    latitude = max(-MAX_ABS_LATITUDE, min(MAX_ABS_LATITUDE, latitude))
    return meters_to_lat_degrees(meters) / math.cos(math.radians(latitude))


def offset_coordinate(center: Coordinate, distance_meters: float, angle_radians: float) -> Coordinate:
    """Move `distance_meters` from center; angle 0 points east, pi/2 north."""
    dy = distance_meters * math.sin(angle_radians)
    dx = distance_meters * math.cos(angle_radians)
    return Coordinate(
        latitude=center.latitude + meters_to_lat_degrees(dy),
        longitude=center.longitude + meters_to_lng_degrees(dx, center.latitude),
    )


def lattice_point_count(grid_size: int) -> int:
    return (2 * grid_size + 1) ** 2


def ring_point_count(grid_size: int) -> int:
    """Points on the rings only (without center and random infill)."""
    return sum(_points_on_ring(ring, grid_size) for ring in range(1, grid_size + 1))


def sub_search_radius(radius_meters: float, grid_size: int) -> float:
    """Radius of each cell's sub-search; overlaps neighbours just enough to close gaps."""
    return radius_meters / (grid_size + 1)


def uses_ring_layout(radius_meters: float) -> bool:
    return radius_meters >= LARGE_RADIUS_THRESHOLD_METERS


def _points_on_ring(ring: int, grid_size: int) -> int:
    return max(RING_MIN_POINTS, int(math.floor(RING_MAX_POINTS * ring / grid_size)))


def _lattice_points(center: Coordinate, radius_meters: float, grid_size: int) -> List[Coordinate]:
    step_meters = radius_meters / grid_size
    lat_step = meters_to_lat_degrees(step_meters)
    lng_step = meters_to_lng_degrees(step_meters, center.latitude)

    points: List[Coordinate] = []
    for row in range(-grid_size, grid_size + 1):
        for col in range(-grid_size, grid_size + 1):
            points.append(
                Coordinate(
                    latitude=center.latitude + row * lat_step,
                    longitude=center.longitude + col * lng_step,
                )
            )
    return points


def _ring_points(
    center: Coordinate,
    radius_meters: float,
    grid_size: int,
    rng: random.Random,
) -> List[Coordinate]:
    points: List[Coordinate] = [center]
    for ring in range(1, grid_size + 1):
        count = _points_on_ring(ring, grid_size)
        distance = RING_DISTANCE_FACTOR * radius_meters * (ring / grid_size)
        for i in range(count):
            points.append(offset_coordinate(center, distance, 2 * math.pi * i / count))

    low, high = RANDOM_DISTANCE_RANGE
    for _ in range(RANDOM_POINTS_PER_GRID_STEP * grid_size):
        angle = rng.random() * 2 * math.pi
        distance = radius_meters * (low + rng.random() * (high - low))
        points.append(offset_coordinate(center, distance, angle))
    return points


def generate_grid_points(
    center: Coordinate,
    radius_meters: float,
    grid_size: int,
    rng: Optional[random.Random] = None,
) -> List[Coordinate]:
    """Return the sub-search centers for a sweep around `center`.

    The lattice layout is fully deterministic. The ring layout appends random
    infill points drawn from `rng`; pass a seeded `random.Random` to make it
    reproducible.
    """
    if grid_size < 1:
        raise ValueError("grid_size must be >= 1")
    if radius_meters <= 0:
        raise ValueError("radius_meters must be > 0")
    if not -90.0 <= center.latitude <= 90.0:
        raise ValueError("center latitude must be within [-90, 90]")

    if uses_ring_layout(radius_meters):
        points = _ring_points(center, radius_meters, grid_size, rng or random.Random())
        layout = "ring"
    else:
        points = _lattice_points(center, radius_meters, grid_size)
        layout = "lattice"

    logger.debug(
        "Generated %d %s grid points (radius=%.0fm, grid_size=%d)",
        len(points), layout, radius_meters, grid_size,
    )
    return points
