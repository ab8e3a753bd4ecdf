import math
import random

import pytest

from grid_generator import (
    EARTH_RADIUS_METERS,
    LARGE_RADIUS_THRESHOLD_METERS,
    generate_grid_points,
    lattice_point_count,
    ring_point_count,
    sub_search_radius,
)
from leads_models import Coordinate

SEATTLE = Coordinate(latitude=47.6062, longitude=-122.3321)


def _distance_m(center, point):
    # exact inverse of the small-angle conversion used by the generator
    dy = (point.latitude - center.latitude) * math.pi / 180 * EARTH_RADIUS_METERS
    dx = (
        (point.longitude - center.longitude)
        * math.pi / 180 * EARTH_RADIUS_METERS
        * math.cos(math.radians(center.latitude))
    )
    return math.hypot(dx, dy)


def test_small_radius_lattice_has_25_points():
    points = generate_grid_points(SEATTLE, 5000, 2)
    assert len(points) == 25 == lattice_point_count(2)


def test_lattice_steps_and_center():
    points = generate_grid_points(SEATTLE, 5000, 2)
    lat_step = (5000 / 2) / EARTH_RADIUS_METERS * 180 / math.pi
    lng_step = lat_step / math.cos(math.radians(SEATTLE.latitude))

    assert points[12] == SEATTLE
    assert points[0].latitude == pytest.approx(SEATTLE.latitude - 2 * lat_step)
    assert points[0].longitude == pytest.approx(SEATTLE.longitude - 2 * lng_step)
    assert points[-1].latitude == pytest.approx(SEATTLE.latitude + 2 * lat_step)
    assert points[-1].longitude == pytest.approx(SEATTLE.longitude + 2 * lng_step)


def test_lattice_is_deterministic():
    assert generate_grid_points(SEATTLE, 20000, 3) == generate_grid_points(SEATTLE, 20000, 3)


def test_one_meter_below_threshold_uses_lattice():
    points = generate_grid_points(SEATTLE, LARGE_RADIUS_THRESHOLD_METERS - 1, 2)
    assert len(points) == lattice_point_count(2)


def test_threshold_uses_ring_layout():
    points = generate_grid_points(SEATTLE, LARGE_RADIUS_THRESHOLD_METERS, 2, rng=random.Random(1))
    # center + rings (8 + 16) + 3 * grid_size random points
    assert ring_point_count(2) == 24
    assert len(points) == 1 + 24 + 6
    assert points[0] == SEATTLE


def test_ring_counts_respect_minimum():
    # grid_size 4: floor(16 * ring / 4) = 4, 8, 12, 16 -> min 8
    assert ring_point_count(4) == 8 + 8 + 12 + 16


def test_ring_points_sit_on_their_rings():
    radius = 200000.0
    points = generate_grid_points(SEATTLE, radius, 2, rng=random.Random(7))
    ring1 = points[1:9]
    ring2 = points[9:25]
    for p in ring1:
        assert _distance_m(SEATTLE, p) == pytest.approx(0.8 * radius * 0.5, rel=1e-9)
    for p in ring2:
        assert _distance_m(SEATTLE, p) == pytest.approx(0.8 * radius, rel=1e-9)


def test_random_infill_within_distance_band():
    radius = 250000.0
    points = generate_grid_points(SEATTLE, radius, 3, rng=random.Random(42))
    infill = points[-9:]
    for p in infill:
        d = _distance_m(SEATTLE, p)
        assert 0.3 * radius - 1e-6 <= d <= 0.9 * radius + 1e-6


def test_seeded_ring_layout_is_reproducible():
    a = generate_grid_points(SEATTLE, 300000, 3, rng=random.Random(99))
    b = generate_grid_points(SEATTLE, 300000, 3, rng=random.Random(99))
    c = generate_grid_points(SEATTLE, 300000, 3, rng=random.Random(100))
    assert a == b
    assert a[-9:] != c[-9:]
    # ring part never depends on the random source
    assert a[:-9] == c[:-9]


def test_invalid_arguments():
    with pytest.raises(ValueError):
        generate_grid_points(SEATTLE, 5000, 0)
    with pytest.raises(ValueError):
        generate_grid_points(SEATTLE, 0, 2)


def test_sub_search_radius():
    assert sub_search_radius(5000, 2) == pytest.approx(5000 / 3)


def test_polar_center_keeps_longitudes_finite():
    pole = Coordinate(latitude=90.0, longitude=10.0)
    points = generate_grid_points(pole, 5000, 2)
    assert len(points) == 25
    for p in points:
        assert math.isfinite(p.longitude)
        assert abs(p.longitude - pole.longitude) < 5


def test_out_of_range_latitude_is_rejected():
    with pytest.raises(ValueError):
        generate_grid_points(Coordinate(latitude=91.0, longitude=0.0), 5000, 2)
