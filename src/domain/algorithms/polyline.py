"""Coordinate sequences for rendering segments on a map.

All functions are pure and deterministic: the same inputs always produce the
same points, which keeps cached routes and tests stable.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from src.domain.models import GeoPoint

from .geo_utils import haversine_distance_km

MIN_STEPS = 5
MAX_STEPS = 200
SHORT_DISTANCE_KM = 10.0
LONG_DISTANCE_KM = 1000.0

WaveFn = Callable[[float], float]


def _normalize_lon(lon: float) -> float:
    value = ((lon + 180.0) % 360.0) - 180.0
    # Keep +180 when the input was exactly +180 instead of flipping to -180.
    if value == -180.0 and lon > 0:
        return 180.0
    return value


def great_circle_steps(distance_km: float, steps: int | None = None) -> int:
    if steps is not None:
        return max(MIN_STEPS, min(MAX_STEPS, int(steps)))
    if distance_km > LONG_DISTANCE_KM:
        return 100
    if distance_km < SHORT_DISTANCE_KM:
        return 10
    return 50


def great_circle_polyline(
    start: GeoPoint, end: GeoPoint, steps: int | None = None
) -> tuple[GeoPoint, ...]:
    """Points along the great circle from start to end (spherical interpolation).

    Identical endpoints give a single point. Otherwise the arc has
    `steps + 1` points, with steps chosen from the distance unless given.
    """

    if start == end:
        return (start,)

    distance_km = haversine_distance_km(start, end)
    n = great_circle_steps(distance_km, steps)

    lat1, lon1 = math.radians(start.lat), math.radians(start.lon)
    lat2, lon2 = math.radians(end.lat), math.radians(end.lon)

    x1, y1, z1 = (
        math.cos(lat1) * math.cos(lon1),
        math.cos(lat1) * math.sin(lon1),
        math.sin(lat1),
    )
    x2, y2, z2 = (
        math.cos(lat2) * math.cos(lon2),
        math.cos(lat2) * math.sin(lon2),
        math.sin(lat2),
    )

    dot = max(-1.0, min(1.0, x1 * x2 + y1 * y2 + z1 * z2))
    omega = math.acos(dot)
    sin_omega = math.sin(omega)

    points: list[GeoPoint] = [start]
    for i in range(1, n):
        t = i / n
        if sin_omega < 1e-12:
            a, b = 1.0 - t, t
        else:
            a = math.sin((1.0 - t) * omega) / sin_omega
            b = math.sin(t * omega) / sin_omega
        x = a * x1 + b * x2
        y = a * y1 + b * y2
        z = a * z1 + b * z2
        lat = math.degrees(math.atan2(z, math.hypot(x, y)))
        lon = _normalize_lon(math.degrees(math.atan2(y, x)))
        points.append(GeoPoint(lat=lat, lon=lon))
    points.append(end)
    return tuple(points)


def straight_polyline(start: GeoPoint, end: GeoPoint) -> tuple[GeoPoint, ...]:
    if start == end:
        return (start,)
    return (start, end)


def river_wave(t: float) -> float:
    return (
        math.sin(4.0 * math.pi * t)
        + 0.5 * math.sin(6.0 * math.pi * t)
        + 0.3 * math.sin(8.0 * math.pi * t)
    )


def ice_road_wave(t: float) -> float:
    return (
        math.sin(3.0 * math.pi * t)
        + 0.5 * math.sin(6.0 * math.pi * t)
        + 0.3 * math.sin(9.0 * math.pi * t)
    )


def wavy_polyline(
    start: GeoPoint,
    end: GeoPoint,
    *,
    amplitude_ratio: float,
    wave: WaveFn = river_wave,
    km_per_point: float = 20.0,
    min_points: int = 5,
) -> tuple[GeoPoint, ...]:
    """A line from start to end with a deterministic lateral perturbation.

    The offset is perpendicular to the chord, scaled by `amplitude_ratio`
    times the chord length, and damped by sin(pi*t) so both endpoints stay
    exactly where they are.
    """

    if start == end:
        return (start,)

    distance_km = haversine_distance_km(start, end)
    count = max(min_points, math.ceil(distance_km / km_per_point))
    count = min(count, MAX_STEPS + 1)

    # Local equirectangular frame in degrees of latitude.
    mean_lat = math.radians((start.lat + end.lat) / 2.0)
    kx = max(math.cos(mean_lat), 1e-6)
    dlon = _normalize_lon(end.lon - start.lon)
    dx = dlon * kx
    dy = end.lat - start.lat
    chord = math.hypot(dx, dy)
    if chord == 0.0:
        return (start, end)
    # Unit normal to the chord.
    nx_, ny_ = -dy / chord, dx / chord

    points: list[GeoPoint] = [start]
    for i in range(1, count - 1):
        t = i / (count - 1)
        offset = amplitude_ratio * chord * wave(t) * math.sin(math.pi * t)
        px = dx * t + nx_ * offset
        py = dy * t + ny_ * offset
        lat = max(-90.0, min(90.0, start.lat + py))
        lon = _normalize_lon(start.lon + px / kx)
        points.append(GeoPoint(lat=lat, lon=lon))
    points.append(end)
    return tuple(points)


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks: list[str] = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def encode_polyline(points: Sequence[GeoPoint], precision: int = 5) -> str:
    """Google encoded polyline format (lat, lon order)."""

    factor = 10**precision
    out: list[str] = []
    prev_lat = prev_lon = 0
    for p in points:
        lat = _round_half_up(p.lat * factor)
        lon = _round_half_up(p.lon * factor)
        out.append(_encode_value(lat - prev_lat))
        out.append(_encode_value(lon - prev_lon))
        prev_lat, prev_lon = lat, lon
    return "".join(out)


def decode_polyline(encoded: str, precision: int = 5) -> tuple[GeoPoint, ...]:
    factor = 10**precision
    points: list[GeoPoint] = []
    index = 0
    lat = lon = 0
    length = len(encoded)

    while index < length:
        deltas: list[int] = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                if index >= length:
                    raise ValueError("Truncated polyline")
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if result & 1 else result >> 1)
        lat += deltas[0]
        lon += deltas[1]
        points.append(GeoPoint(lat=lat / factor, lon=lon / factor))

    return tuple(points)
