from __future__ import annotations

import pytest

from src.domain.algorithms.geo_utils import haversine_distance_km
from src.domain.algorithms.polyline import (
    MAX_STEPS,
    decode_polyline,
    encode_polyline,
    great_circle_polyline,
    great_circle_steps,
    river_wave,
    straight_polyline,
    wavy_polyline,
)
from src.domain.models import GeoPoint

YAKUTSK = GeoPoint(lat=62.0278, lon=129.7042)
MOSCOW = GeoPoint(lat=55.7558, lon=37.6173)


def test_great_circle_identical_points_is_single_point() -> None:
    assert great_circle_polyline(YAKUTSK, YAKUTSK) == (YAKUTSK,)


def test_great_circle_keeps_exact_endpoints() -> None:
    pts = great_circle_polyline(YAKUTSK, MOSCOW)
    assert pts[0] == YAKUTSK
    assert pts[-1] == MOSCOW


@pytest.mark.parametrize(
    ("end", "expected_points"),
    [
        (GeoPoint(lat=62.05, lon=129.75), 11),  # a few km
        (GeoPoint(lat=62.0278, lon=120.0), 51),  # hundreds of km
        (MOSCOW, 101),  # thousands of km
    ],
)
def test_great_circle_point_count_follows_distance(
    end: GeoPoint, expected_points: int
) -> None:
    assert len(great_circle_polyline(YAKUTSK, end)) == expected_points


def test_great_circle_explicit_steps_are_clamped() -> None:
    assert great_circle_steps(100.0, steps=1) == 5
    assert great_circle_steps(100.0, steps=10_000) == MAX_STEPS
    assert len(great_circle_polyline(YAKUTSK, MOSCOW, steps=2)) == 6


def test_great_circle_follows_the_arc_length() -> None:
    pts = great_circle_polyline(YAKUTSK, MOSCOW)
    arc = sum(haversine_distance_km(a, b) for a, b in zip(pts, pts[1:]))
    assert arc == pytest.approx(haversine_distance_km(YAKUTSK, MOSCOW), rel=1e-3)


def test_great_circle_across_antimeridian_stays_in_range() -> None:
    a = GeoPoint(lat=64.7, lon=177.5)  # Anadyr
    b = GeoPoint(lat=64.5, lon=-165.4)  # Nome
    pts = great_circle_polyline(a, b)

    assert all(-180.0 <= p.lon <= 180.0 for p in pts)
    # Short hop across the date line, not a trip around the globe.
    total = sum(haversine_distance_km(x, y) for x, y in zip(pts, pts[1:]))
    assert total < 1000.0


def test_straight_polyline() -> None:
    assert straight_polyline(YAKUTSK, MOSCOW) == (YAKUTSK, MOSCOW)
    assert straight_polyline(YAKUTSK, YAKUTSK) == (YAKUTSK,)


def test_wavy_polyline_is_deterministic_with_exact_endpoints() -> None:
    start = GeoPoint(lat=62.03, lon=129.73)
    end = GeoPoint(lat=63.5, lon=129.0)

    first = wavy_polyline(start, end, amplitude_ratio=0.08, wave=river_wave)
    second = wavy_polyline(start, end, amplitude_ratio=0.08, wave=river_wave)

    assert first == second
    assert first[0] == start
    assert first[-1] == end
    assert len(first) >= 5
    # The wave bends the line away from the chord.
    length = sum(haversine_distance_km(a, b) for a, b in zip(first, first[1:]))
    assert length > haversine_distance_km(start, end)


def test_encoded_polyline_matches_reference_string() -> None:
    # Reference example from the encoded polyline format documentation.
    pts = (
        GeoPoint(lat=38.5, lon=-120.2),
        GeoPoint(lat=40.7, lon=-120.95),
        GeoPoint(lat=43.252, lon=-126.453),
    )
    assert encode_polyline(pts) == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def test_decode_restores_points_within_precision() -> None:
    pts = great_circle_polyline(YAKUTSK, MOSCOW, steps=10)
    decoded = decode_polyline(encode_polyline(pts))

    assert len(decoded) == len(pts)
    for a, b in zip(pts, decoded):
        assert abs(a.lat - b.lat) <= 1e-5
        assert abs(a.lon - b.lon) <= 1e-5


def test_decode_rejects_truncated_input() -> None:
    with pytest.raises(ValueError):
        decode_polyline("_p~iF~ps|U_")
