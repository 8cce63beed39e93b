from __future__ import annotations

from typing import Iterator

import httpx
import pytest

from src.adapters.api.dependencies import (
    get_build_route_service,
    get_city_directory_service,
    get_connectivity_service,
    get_graph_repository,
)
from src.app.services.city_directory_service import CityDirectoryService
from src.app.services.connectivity_service import ConnectivityService
from src.main import app
from tests.unit.fakes import (
    FakeGraphRepository,
    make_build_route_service,
    yakutia_reference,
)

BUILD_BODY = {
    "from_city": "Якутск",
    "to_city": "Москва",
    "travel_date": "2030-03-04",
    "booking_date": "2030-01-01",
}


def _client() -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture(autouse=True)
def clear_overrides() -> Iterator[None]:
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def reference():
    return yakutia_reference()


@pytest.fixture
def graph_repository(reference) -> FakeGraphRepository:
    return FakeGraphRepository()


@pytest.fixture
def build_service(reference, graph_repository):
    service = make_build_route_service(reference, graph_repository)
    app.dependency_overrides[get_build_route_service] = lambda: service
    app.dependency_overrides[get_graph_repository] = lambda: graph_repository
    return service


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    async with _client() as client:
        resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_build_route_returns_priced_route(build_service) -> None:
    async with _client() as client:
        resp = await client.post("/routes/build", json=BUILD_BODY)

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["success"] is True
    assert payload["graph_available"] is True
    route = payload["route"]
    segment = route["segments"][0]
    assert segment["from_stop"]["id"] == "yks"
    assert segment["to_stop"]["id"] == "svo"
    assert segment["transport_type"] == "airplane"
    assert segment["polyline"]
    assert segment["price"]["total"] == sum(
        segment["price"][k] for k in ("base", "taxi", "baggage", "fees", "transfer")
    )
    assert route["total_price"]["total"] == segment["price"]["total"]
    assert payload["validation"]["is_valid"] is True


@pytest.mark.unit
@pytest.mark.anyio
async def test_build_route_domain_failure_is_unsuccessful_response(build_service) -> None:
    async with _client() as client:
        resp = await client.post(
            "/routes/build", json={**BUILD_BODY, "from_city": "Атлантида"}
        )

    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["error_code"] == "NO_STOPS_FOR_CITY"


@pytest.mark.unit
@pytest.mark.anyio
async def test_build_route_without_graph(reference) -> None:
    service = make_build_route_service(reference, FakeGraphRepository(), publish=False)
    app.dependency_overrides[get_build_route_service] = lambda: service

    async with _client() as client:
        resp = await client.post("/routes/build", json=BUILD_BODY)

    payload = resp.json()
    assert payload["graph_available"] is False
    assert payload["error_code"] == "GRAPH_UNAVAILABLE"


@pytest.mark.unit
@pytest.mark.anyio
@pytest.mark.parametrize(
    "override",
    [{"passengers": 0}, {"max_transfers": -1}, {"preferred_transport": "rocket"}],
)
async def test_build_route_rejects_invalid_input(build_service, override) -> None:
    async with _client() as client:
        resp = await client.post("/routes/build", json={**BUILD_BODY, **override})

    assert resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_cached_route_can_be_fetched_and_checked(build_service) -> None:
    async with _client() as client:
        built = (await client.post("/routes/build", json=BUILD_BODY)).json()["route"]
        fetched = await client.get(f"/routes/{built['route_id']}")
        checked = await client.get(f"/routes/{built['route_id']}/reality-check")
        posted = await client.post("/routes/reality-check", json=built)

    assert fetched.status_code == 200
    assert fetched.json()["segments"][0]["segment_id"] == built["segments"][0]["segment_id"]
    assert checked.status_code == 200
    assert checked.json()["route_id"] == built["route_id"]
    assert posted.status_code == 200
    assert posted.json()["has_issues"] == checked.json()["has_issues"]


@pytest.mark.unit
@pytest.mark.anyio
async def test_unknown_route_is_404(build_service) -> None:
    async with _client() as client:
        resp = await client.get("/routes/r-unknown")

    assert resp.status_code == 404
    assert resp.json()["error"] == "RouteNotFound"


@pytest.mark.unit
@pytest.mark.anyio
async def test_autocomplete(reference) -> None:
    app.dependency_overrides[get_city_directory_service] = lambda: CityDirectoryService(
        reference
    )

    async with _client() as client:
        resp = await client.get("/cities/autocomplete", params={"q": "мир", "limit": 5})

    assert resp.status_code == 200
    payload = resp.json()
    assert payload["query"] == "мир"
    assert [c["id"] for c in payload["items"]] == ["mirny"]
    assert payload["items"][0]["normalized_name"] == "мирный"


@pytest.mark.unit
@pytest.mark.anyio
async def test_graph_status(build_service) -> None:
    async with _client() as client:
        payload = (await client.get("/graph/status")).json()
        app.dependency_overrides[get_graph_repository] = lambda: FakeGraphRepository()
        empty = (await client.get("/graph/status")).json()

    assert payload["available"] is True
    assert payload["version"] == "test-v1"
    assert payload["node_count"] == 4
    assert empty["available"] is False


@pytest.mark.unit
@pytest.mark.anyio
async def test_graph_connectivity(reference, build_service, graph_repository) -> None:
    app.dependency_overrides[get_connectivity_service] = lambda: ConnectivityService(
        graph_repository=graph_repository,
        city_repository=reference,
        stop_repository=reference,
    )

    async with _client() as client:
        resp = await client.get("/graph/connectivity")

    assert resp.status_code == 200
    assert resp.json()["is_connected"] is True
    assert resp.json()["graph"]["nodes"] == 4


@pytest.mark.unit
@pytest.mark.anyio
async def test_connectivity_without_graph_is_503(reference) -> None:
    app.dependency_overrides[get_connectivity_service] = lambda: ConnectivityService(
        graph_repository=FakeGraphRepository(),
        city_repository=reference,
        stop_repository=reference,
    )

    async with _client() as client:
        resp = await client.get("/graph/connectivity")

    assert resp.status_code == 503
    assert resp.json()["error"] == "GraphUnavailable"
