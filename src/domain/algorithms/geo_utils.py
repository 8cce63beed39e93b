from __future__ import annotations

import math
from typing import Sequence

from src.domain.models import GeoPoint

EARTH_RADIUS_M = 6371000.0


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""

    lat1 = math.radians(a.lat)
    lon1 = math.radians(a.lon)
    lat2 = math.radians(b.lat)
    lon2 = math.radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    s = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    )
    # Clamp: rounding can push s marginally above 1 for antipodal points.
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, s)))


def haversine_distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_distance_m(a, b) / 1000.0


def polyline_distance_km(points: Sequence[GeoPoint]) -> float:
    if len(points) < 2:
        return 0.0
    return float(sum(haversine_distance_km(a, b) for a, b in zip(points, points[1:])))


def max_gap_km(points: Sequence[GeoPoint]) -> float:
    """Largest distance between two consecutive points of a polyline."""

    if len(points) < 2:
        return 0.0
    return max(haversine_distance_km(a, b) for a, b in zip(points, points[1:]))
