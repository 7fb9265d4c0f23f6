import math

import pytest
from geopy.distance import geodesic

from fairmeet.geometry import candidate_grid, centroid, dedupe_points, to_offset_degrees
from fairmeet.models import Coordinate

from conftest import LONDON_A, LONDON_B, LONDON_C, participant


def test_centroid_is_arithmetic_mean():
    people = [participant("a", LONDON_A), participant("b", LONDON_B), participant("c", LONDON_C)]
    c = centroid(people)
    assert c.lat == pytest.approx((51.50 + 51.52 + 51.49) / 3)
    assert c.lng == pytest.approx((-0.12 - 0.10 - 0.14) / 3)


def test_centroid_of_two_participants():
    c = centroid([participant("a", Coordinate(0, 0)), participant("b", Coordinate(2, 4))])
    assert c == Coordinate(1, 2)


def test_offset_degrees_at_equator():
    dlat, dlng = to_offset_degrees(111, 111, 0)
    assert dlat == pytest.approx(1.0)
    assert dlng == pytest.approx(1.0)


def test_offset_degrees_widen_with_latitude():
    _, dlng = to_offset_degrees(0, 111, 60)
    assert dlng == pytest.approx(2.0)


def test_grid_starts_with_exact_center():
    center = Coordinate(51.5, -0.12)
    grid = candidate_grid(center, 20, 5)
    assert grid[0] == center
    assert grid.count(center) == 1


@pytest.mark.parametrize("grid_size, expected", [(5, 25), (3, 9), (4, 17), (2, 5)])
def test_grid_size(grid_size, expected):
    grid = candidate_grid(Coordinate(51.5, -0.12), 20, grid_size)
    assert len(grid) == expected
    assert len(set(grid)) == expected


@pytest.mark.parametrize("radius_km", [3, 20])
def test_grid_points_stay_within_radius_diagonal(radius_km):
    center = Coordinate(51.5, -0.12)
    limit = radius_km * math.sqrt(2) * 1.01  # planar approximation slack
    for point in candidate_grid(center, radius_km, 5):
        assert geodesic((center.lat, center.lng), (point.lat, point.lng)).km <= limit


def test_grid_at_pole_does_not_blow_up():
    grid = candidate_grid(Coordinate(90.0, 0.0), 3, 5)
    assert len(grid) == 25
    for point in grid:
        assert -90.0 <= point.lat <= 90.0
        assert math.isfinite(point.lng)


def test_dedupe_drops_near_duplicates_and_keeps_first():
    points = [
        Coordinate(51.5, -0.1),
        Coordinate(51.50005, -0.10005),
        Coordinate(51.5, -0.1002),
        Coordinate(51.6, -0.1),
    ]
    assert dedupe_points(points) == [points[0], points[2], points[3]]


def test_dedupe_is_idempotent():
    center = Coordinate(51.5, -0.12)
    overlapping = candidate_grid(center, 3, 5) + candidate_grid(Coordinate(51.5, -0.12 + 1e-5), 3, 5)
    once = dedupe_points(overlapping)
    assert len(once) == 25
    assert dedupe_points(once) == once
