from __future__ import annotations

from datetime import date, datetime

import pytest

from src.app.services.route_validator import RouteValidator, StructuralDetector
from src.domain.exceptions import ValidationFailed
from src.domain.models import (
    BuiltRoute,
    GeoPoint,
    IssueType,
    RouteSegment,
    Stop,
    StopKind,
    TransportType,
)


def _stop(stop_id: str, lat: float, lon: float, city_id: str | None, **flags) -> Stop:
    return Stop(
        id=stop_id,
        name=stop_id,
        location=GeoPoint(lat=lat, lon=lon),
        city_id=city_id,
        **flags,
    )


YKS = _stop("yks", 62.09, 129.77, "yakutsk", is_airport=True, is_hub=True)
MJZ = _stop("mjz", 62.53, 114.04, "mirny", is_airport=True)
SVO = _stop("svo", 55.97, 37.41, "moscow", is_airport=True, is_hub=True)
DME = _stop("dme", 55.41, 37.90, "moscow", is_airport=True)


def _seg(sid, a, b, mode=TransportType.AIRPLANE, distance=800.0, duration=120, **kw):
    return RouteSegment(
        segment_id=sid,
        from_stop=a,
        to_stop=b,
        transport_type=mode,
        distance_km=distance,
        duration_min=duration,
        **kw,
    )


def _route(*segments) -> BuiltRoute:
    return BuiltRoute(
        route_id="r",
        from_city="mirny",
        to_city="moscow",
        travel_date=date(2030, 3, 4),
        segments=segments,
    )


def _kinds(issues) -> set[IssueType]:
    return {i.type for i in issues}


def test_chained_flights_are_valid() -> None:
    route = _route(
        _seg("s1", MJZ, YKS, distance=800.0, duration=120),
        _seg("s2", YKS, SVO, distance=4880.0, duration=390),
    )

    result = RouteValidator().validate(route)

    assert result.is_valid
    assert [sv.segment_id for sv in result.segment_validations] == ["s1", "s2"]
    result.ensure_valid()


def test_gap_between_cities_is_empty_space() -> None:
    route = _route(
        _seg("s1", MJZ, YKS),
        _seg("s2", SVO, DME, distance=50.0, duration=60),
    )

    detected = StructuralDetector().detect(route)

    assert IssueType.EMPTY_SPACE in _kinds(detected.errors)
    result = RouteValidator().validate(route)
    assert not result.is_valid
    with pytest.raises(ValidationFailed) as exc:
        result.ensure_valid()
    assert any("empty_space" in e for e in exc.value.errors)


def test_change_of_airport_inside_a_city_is_too_far_to_walk() -> None:
    route = _route(
        _seg("s1", YKS, SVO, distance=4880.0, duration=390),
        _seg("s2", DME, YKS, distance=4900.0, duration=400),
    )

    detected = StructuralDetector().detect(route)

    assert IssueType.INCORRECT_CONNECTION in _kinds(detected.errors)
    assert IssueType.EMPTY_SPACE not in _kinds(detected.errors)


def test_impossible_speed_and_non_airport_flight() -> None:
    station = _stop("station", 62.0, 129.7, "yakutsk", is_railway_station=True)
    route = _route(_seg("s1", station, MJZ, distance=900.0, duration=30))

    detected = StructuralDetector().detect(route)

    messages = " ".join(e.message for e in detected.errors)
    assert "exceeds" in messages
    assert "not an airport" in messages


def test_seasonal_modes_are_checked_against_departure_date() -> None:
    pier_a = _stop("pier-a", 62.0, 129.7, "yakutsk")
    pier_b = _stop("pier-b", 62.1, 129.9, "nizhny-bestyakh")
    route = _route(
        _seg(
            "ferry",
            pier_a,
            pier_b,
            TransportType.FERRY,
            distance=15.0,
            duration=40,
            departure=datetime(2030, 1, 10, 9),
            arrival=datetime(2030, 1, 10, 9, 40),
        )
    )

    detected = StructuralDetector().detect(route)

    assert any("winter" in e.message for e in detected.errors)


def test_invalid_city_id_format() -> None:
    bad = Stop(
        id="virtual-x",
        name="X",
        location=GeoPoint(lat=60.0, lon=120.0),
        city_id="Not Valid!",
        kind=StopKind.VIRTUAL,
        is_airport=True,
    )
    route = _route(_seg("s1", bad, YKS, distance=600.0, duration=120))

    detected = StructuralDetector().detect(route)

    assert IssueType.INVALID_CITY_FORMAT in _kinds(detected.errors)


def test_empty_route_is_unrealistic() -> None:
    result = RouteValidator().validate(_route())
    assert not result.is_valid
    assert "unrealistic_route" in result.errors[0]


def test_reality_issues_become_warnings_with_corrections() -> None:
    # Distance claims are far off the coordinates.
    route = _route(_seg("s1", MJZ, YKS, distance=2000.0, duration=240))

    result = RouteValidator().validate(route)

    assert result.is_valid
    assert any("distance_mismatch" in w for w in result.warnings)
    assert result.corrections
    assert result.segment_validations[0].warnings
