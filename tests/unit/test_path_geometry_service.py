from __future__ import annotations

import logging
from datetime import date

import pytest

from src.app.services.path_geometry_service import PathGeometryService
from src.domain.models import BuiltRoute, GeoPoint, RouteSegment, Stop, TransportType
from tests.unit.fakes import FakeRoadProvider

YAKUTSK = GeoPoint(lat=62.0278, lon=129.7042)
BESTYAKH = GeoPoint(lat=61.97, lon=129.91)
MOSCOW = GeoPoint(lat=55.7558, lon=37.6173)


@pytest.mark.anyio
async def test_airplane_uses_great_circle() -> None:
    result = await PathGeometryService().geometry_for(TransportType.AIRPLANE, YAKUTSK, MOSCOW)

    assert result.source == "great_circle"
    assert len(result.points) == 101
    assert not result.degraded


@pytest.mark.anyio
async def test_bus_uses_road_provider_points() -> None:
    mid = GeoPoint(lat=62.0, lon=129.8)
    provider = FakeRoadProvider(points=(YAKUTSK, mid, BESTYAKH))
    service = PathGeometryService(road_provider=provider)

    result = await service.geometry_for(TransportType.BUS, YAKUTSK, BESTYAKH)

    assert result.source == "road"
    assert result.points == (YAKUTSK, mid, BESTYAKH)
    assert provider.calls == 1


@pytest.mark.anyio
async def test_road_failure_degrades_to_straight_line(caplog) -> None:
    service = PathGeometryService(road_provider=FakeRoadProvider(fail=True))

    with caplog.at_level(logging.WARNING):
        result = await service.geometry_for(TransportType.TAXI, YAKUTSK, BESTYAKH)

    assert result.points == (YAKUTSK, BESTYAKH)
    assert result.source == "road_fallback"
    assert result.degraded
    assert "Road routing degraded" in caplog.text


@pytest.mark.anyio
async def test_no_road_provider_is_degraded() -> None:
    result = await PathGeometryService().geometry_for(TransportType.BUS, YAKUTSK, BESTYAKH)
    assert result.degraded
    assert result.source == "road_fallback"


@pytest.mark.anyio
async def test_ferry_and_winter_road_are_wavy() -> None:
    service = PathGeometryService()
    end = GeoPoint(lat=63.5, lon=129.0)

    river = await service.geometry_for(TransportType.FERRY, YAKUTSK, end)
    ice = await service.geometry_for(TransportType.WINTER_ROAD, YAKUTSK, end)

    assert river.source == "river"
    assert ice.source == "ice_road"
    for result in (river, ice):
        assert result.points[0] == YAKUTSK
        assert result.points[-1] == end
        assert len(result.points) > 2


@pytest.mark.anyio
async def test_identical_endpoints_give_single_point() -> None:
    service = PathGeometryService(road_provider=FakeRoadProvider())
    for mode in TransportType:
        result = await service.geometry_for(mode, YAKUTSK, YAKUTSK)
        assert result.points == (YAKUTSK,)


@pytest.mark.anyio
async def test_render_segment_sets_source_and_flag() -> None:
    segment = RouteSegment(
        segment_id="s1",
        from_stop=Stop(id="a", name="A", location=YAKUTSK),
        to_stop=Stop(id="b", name="B", location=BESTYAKH),
        transport_type=TransportType.BUS,
        distance_km=20.0,
        duration_min=40,
    )
    service = PathGeometryService(road_provider=FakeRoadProvider(fail=True))

    rendered = await service.render_segment(segment)

    assert rendered.geometry == (YAKUTSK, BESTYAKH)
    assert rendered.geometry_source == "road_fallback"
    assert rendered.geometry_degraded


@pytest.mark.anyio
async def test_render_route_keeps_segment_order() -> None:
    moscow = Stop(id="svo", name="SVO", location=MOSCOW, is_airport=True)
    yakutsk = Stop(id="yks", name="YKS", location=YAKUTSK, is_airport=True)
    bestyakh = Stop(id="bst", name="BST", location=BESTYAKH)
    route = BuiltRoute(
        route_id="r1",
        from_city="moscow",
        to_city="bestyakh",
        travel_date=date(2030, 3, 4),
        segments=(
            RouteSegment("s1", moscow, yakutsk, TransportType.AIRPLANE, 4880.0, 390),
            RouteSegment("s2", yakutsk, bestyakh, TransportType.FERRY, 20.0, 60),
        ),
    )

    rendered = await PathGeometryService().render_route(route)

    assert [s.segment_id for s in rendered.segments] == ["s1", "s2"]
    assert [s.geometry_source for s in rendered.segments] == ["great_circle", "river"]
    assert rendered.segments[0].geometry[0] == MOSCOW
    assert rendered.segments[1].geometry[-1] == BESTYAKH
    assert route.segments[0].geometry == ()
