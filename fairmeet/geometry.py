"""
Planar geometry helpers for generating candidate meeting points.

Everything here works on a local flat-earth approximation of latitude and
longitude, which is good enough at city or regional scale. The degree
conversion is kept in ``to_offset_degrees`` so a geodesic version can be
dropped in without touching the grid logic.
"""

import math
from typing import Iterable, List, Sequence, Tuple

from .models import Coordinate, Participant

KM_PER_DEGREE = 111.0
# cos(lat) below this is treated as a pole, where meridians converge
_MIN_LONGITUDE_SCALE = 1e-9
DEDUPE_EPSILON_DEG = 1e-4  # ~11 m


def centroid(participants: Iterable[Participant]) -> Coordinate:
    """Arithmetic mean of participant latitudes and longitudes (no spherical correction)"""
    points = [p.location for p in participants]
    if not points:
        raise ValueError("Cannot compute the centroid of zero participants")
    return Coordinate(
        lat=sum(p.lat for p in points) / len(points),
        lng=sum(p.lng for p in points) / len(points),
    )


def to_offset_degrees(km_north: float, km_east: float, at_latitude: float) -> Tuple[float, float]:
    """Convert a kilometre offset at a given latitude to a (dlat, dlng) degree offset"""
    dlat = km_north / KM_PER_DEGREE
    lng_scale = math.cos(math.radians(at_latitude))
    if abs(lng_scale) < _MIN_LONGITUDE_SCALE:
        return dlat, 0.0
    return dlat, km_east / (KM_PER_DEGREE * lng_scale)


def candidate_grid(center: Coordinate, radius_km: float, grid_size: int) -> List[Coordinate]:
    """
    Return ``center`` followed by a grid_size x grid_size lattice around it.

    The lattice step is ``2 * radius_km / grid_size`` and node indices run
    symmetrically about the center. For odd sizes one lattice node falls on
    the center itself; it is not added a second time.

    Yields ``grid_size**2`` points for odd sizes (25 at the default 5) and
    ``grid_size**2 + 1`` for even sizes.
    """
    if grid_size < 1:
        raise ValueError("grid_size must be at least 1")

    step_km = 2.0 * radius_km / grid_size
    # Offsets in units of step_km: integers for odd sizes, half-integers for even ones
    offsets = [k - (grid_size - 1) / 2.0 for k in range(grid_size)]

    candidates = [center]
    for i in offsets:
        for j in offsets:
            if i == 0 and j == 0:
                continue
            dlat, dlng = to_offset_degrees(i * step_km, j * step_km, center.lat)
            candidates.append(Coordinate(
                lat=max(-90.0, min(90.0, center.lat + dlat)),
                lng=center.lng + dlng,
            ))
    return candidates


def dedupe_points(points: Sequence[Coordinate], epsilon_deg: float = DEDUPE_EPSILON_DEG) -> List[Coordinate]:
    """Drop points lying within epsilon (in both lat and lng) of an earlier kept point"""
    kept: List[Coordinate] = []
    for p in points:
        if any(abs(p.lat - k.lat) < epsilon_deg and abs(p.lng - k.lng) < epsilon_deg for k in kept):
            continue
        kept.append(p)
    return kept
