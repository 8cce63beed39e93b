from __future__ import annotations

from datetime import date

import pytest

from src.app.services.build_route_service import BuildRouteRequest
from src.domain.exceptions import NoStopsForCity, RouteNotFound
from src.domain.models import IssueType, ServiceClass, TransportType
from tests.unit.fakes import (
    FakeGraphRepository,
    leg,
    make_build_route_service,
    rail_line_reference,
    yakutia_reference,
)

MONDAY = date(2030, 3, 4)
BOOKED = date(2030, 1, 1)


def _request(from_city: str, to_city: str, **kwargs) -> BuildRouteRequest:
    kwargs.setdefault("travel_date", MONDAY)
    kwargs.setdefault("booking_date", BOOKED)
    return BuildRouteRequest(from_city=from_city, to_city=to_city, **kwargs)


@pytest.mark.anyio
async def test_no_graph_reports_graph_unavailable() -> None:
    service = make_build_route_service(
        yakutia_reference(), FakeGraphRepository(), publish=False
    )

    response = await service.build(_request("yakutsk", "moscow"))

    assert not response.success
    assert not response.graph_available
    assert response.error_code == "GRAPH_UNAVAILABLE"


@pytest.mark.anyio
async def test_builds_direct_flight() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("yakutsk", "moscow"))

    assert response.success, response.error
    route = response.route
    assert response.graph_version == "test-v1"
    assert route.graph_version == "test-v1"
    assert [s.from_stop.id for s in route.segments] == ["yks"]
    assert route.segments[0].to_stop.id == "svo"
    assert route.segments[0].departure.date() == MONDAY
    assert route.segments[0].geometry_source == "great_circle"
    assert route.transfer_count == 0
    assert route.total_price.total == sum(s.price.total for s in route.segments)
    assert response.validation is not None
    assert response.validation.is_valid


@pytest.mark.anyio
async def test_city_names_resolve_like_ids() -> None:
    service = make_build_route_service(yakutia_reference())

    by_name = await service.build(_request("Якутск", "МОСКВА"))
    by_id = await service.build(_request("yakutsk", "moscow"))

    assert by_name.success
    assert by_name.route.segments[0].from_stop.id == by_id.route.segments[0].from_stop.id
    assert by_name.route.segments[0].to_stop.id == "svo"


@pytest.mark.anyio
async def test_small_airport_routes_through_a_hub() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("mirny", "moscow"))

    assert response.success, response.error
    route = response.route
    assert [(s.from_stop.id, s.to_stop.id) for s in route.segments] == [
        ("mjz", "yks"),
        ("yks", "svo"),
    ]
    assert route.hub_count == 1
    assert route.transfer_count == 1
    # Connection is only possible the next morning.
    assert route.segments[1].departure.date() == date(2030, 3, 5)
    assert route.segments[0].price.transfer == 0
    assert route.segments[1].price.transfer == 750


@pytest.mark.anyio
async def test_small_airport_skips_long_direct_flight() -> None:
    reference = yakutia_reference()
    reference.legs.append(leg("r9901", "mjz", "svo", "06:00", "13:00"))
    service = make_build_route_service(reference)

    response = await service.build(_request("mirny", "moscow"))

    assert response.success, response.error
    assert [(s.from_stop.id, s.to_stop.id) for s in response.route.segments] == [
        ("mjz", "yks"),
        ("yks", "svo"),
    ]
    assert response.route.hub_count == 1


@pytest.mark.anyio
async def test_small_airport_flies_direct_to_regional_hub() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("mirny", "yakutsk"))

    assert response.success, response.error
    assert [s.leg.leg_id for s in response.route.segments] == ["r3202"]


@pytest.mark.anyio
async def test_zero_transfers_from_small_airport_is_no_path() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("mirny", "moscow", max_transfers=0))

    assert not response.success
    assert response.graph_available
    assert response.error_code == "NO_PATH_FOUND"


@pytest.mark.anyio
async def test_unknown_city_is_no_stops_for_city() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("atlantis", "moscow"))

    assert response.error_code == "NO_STOPS_FOR_CITY"


@pytest.mark.anyio
@pytest.mark.parametrize("preferred", [None, TransportType.TRAIN])
async def test_transfer_limit_on_a_rail_chain(preferred) -> None:
    service = make_build_route_service(rail_line_reference(5))

    too_few = await service.build(
        _request("town1", "town5", max_transfers=2, preferred_transport=preferred)
    )
    enough = await service.build(
        _request("town1", "town5", max_transfers=3, preferred_transport=preferred)
    )

    assert too_few.error_code == "NO_PATH_FOUND"
    assert enough.success, enough.error
    assert len(enough.route.segments) == 4
    assert enough.route.transfer_count == 3
    assert all(s.transport_type is TransportType.TRAIN for s in enough.route.segments)


@pytest.mark.anyio
async def test_second_build_comes_from_cache() -> None:
    service = make_build_route_service(yakutia_reference())
    request = _request("yakutsk", "moscow")

    first = await service.build(request)
    second = await service.build(request)

    assert not first.from_cache
    assert second.from_cache
    assert second.route.route_id == first.route.route_id
    assert second.route.total_price == first.route.total_price
    assert service.get_route(first.route.route_id).segments[0].to_stop.id == "svo"


@pytest.mark.anyio
async def test_passengers_scale_the_total() -> None:
    service = make_build_route_service(yakutia_reference())

    one = await service.build(_request("yakutsk", "moscow"))
    two = await service.build(_request("yakutsk", "moscow", passengers=2))

    assert two.route.route_id != one.route.route_id
    assert two.route.total_price.total == 2 * one.route.total_price.total


@pytest.mark.anyio
async def test_without_geometry_segments_have_no_points() -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(_request("yakutsk", "moscow", include_geometry=False))

    assert response.route.segments[0].geometry == ()


def test_unknown_route_id_raises() -> None:
    service = make_build_route_service(yakutia_reference())
    with pytest.raises(RouteNotFound):
        service.get_route("r-missing")
    with pytest.raises(RouteNotFound):
        service.reality_check("r-missing")


def test_resolve_city_stops_prefers_real_stops() -> None:
    reference = yakutia_reference()
    service = make_build_route_service(reference)
    snapshot = service.engine.pin()

    assert service.resolve_city_stops(snapshot, "Yakutsk") == ("yks",)
    with pytest.raises(NoStopsForCity):
        service.resolve_city_stops(snapshot, "")


@pytest.mark.anyio
async def test_reality_check_of_cached_route() -> None:
    service = make_build_route_service(yakutia_reference())
    built = await service.build(_request("yakutsk", "moscow"))

    result = service.reality_check(built.route.route_id)

    assert result == service.reality_check(built.route)


@pytest.mark.anyio
@pytest.mark.parametrize("service_class", list(ServiceClass))
async def test_priced_route_agrees_with_its_own_reality_check(service_class) -> None:
    service = make_build_route_service(yakutia_reference())

    response = await service.build(
        _request("yakutsk", "moscow", service_class=service_class)
    )

    assert response.success, response.error
    assert response.route.service_class is service_class
    assert not any("price_mismatch" in w for w in response.validation.warnings)
    issues = service.reality_check(response.route.route_id).issues
    assert IssueType.PRICE_MISMATCH not in {i.type for i in issues}
