from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from src.adapters.persistence import LocalReferenceRepository
from src.domain.models import HubLevel, Season, StopKind, TransportType

DATA = Path(__file__).resolve().parents[2] / "data" / "reference"


@pytest.fixture(scope="module")
def repo() -> LocalReferenceRepository:
    return LocalReferenceRepository(base_path=DATA)


def test_loads_sample_data(repo: LocalReferenceRepository) -> None:
    assert len(repo.list_cities()) == 14
    assert len(repo.get_all_real_stops()) == 21
    assert len(repo.get_all_legs()) == 40
    assert {h.stop_id for h in repo.list_hubs()} == {"svo", "ovb", "yks", "ikt"}
    assert repo.list_hubs()[0].level is HubLevel.FEDERAL


def test_cities_without_stops_get_virtual_stops(repo: LocalReferenceRepository) -> None:
    virtual = {s.id: s for s in repo.get_all_virtual_stops()}

    assert set(virtual) == {"virtual-verkhoyansk", "virtual-chersky"}
    stop = repo.find_stop_by_id("virtual-chersky")
    assert stop is not None
    assert stop.kind is StopKind.VIRTUAL
    assert stop.city_id == "chersky"
    assert repo.find_real_stop_by_id("virtual-chersky") is None


def test_flags_and_transport_types(repo: LocalReferenceRepository) -> None:
    yks = repo.find_real_stop_by_id("yks")
    assert yks.is_airport and yks.is_hub
    legs = {leg.leg_id: leg for leg in repo.get_all_legs()}
    assert legs["tr091"].transport_type is TransportType.TRAIN
    assert legs["tr091"].duration_min == 12 * 60
    assert legs["wr001"].season is Season.WINTER
    assert legs["fr001"].route_id == "lena-crossing"


def test_flights_respect_days_and_season(repo: LocalReferenceRepository) -> None:
    monday, tuesday = date(2030, 3, 4), date(2030, 3, 5)
    assert [leg.leg_id for leg in repo.get_flights_between_stops("ikt", "yks", monday)] == [
        "yc401"
    ]
    assert repo.get_flights_between_stops("ikt", "yks", tuesday) == []

    ferry_summer = repo.get_flights_between_stops(
        "yakutsk-river-port", "nizhny-bestyakh-pier", date(2030, 7, 1)
    )
    ferry_winter = repo.get_flights_between_stops(
        "yakutsk-river-port", "nizhny-bestyakh-pier", date(2030, 1, 15)
    )
    assert {leg.leg_id for leg in ferry_summer} == {"fr001", "fr003"}
    assert ferry_winter == []


def test_reads_path_from_environment(monkeypatch, tmp_path: Path) -> None:
    (tmp_path / "cities.csv").write_text(
        "id,name,lat,lon\nx,X,60.0,120.0\n", encoding="utf-8"
    )
    (tmp_path / "stops.csv").write_text("id,name,lat,lon,city_id\n", encoding="utf-8")
    (tmp_path / "legs.csv").write_text(
        "id,from_stop_id,to_stop_id,transport_type,departure_time,arrival_time\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("REFERENCE_DATA_PATH", str(tmp_path))

    repo = LocalReferenceRepository()

    assert [c.id for c in repo.list_cities()] == ["x"]
    assert repo.list_hubs() == ()
    assert [s.id for s in repo.get_all_virtual_stops()] == ["virtual-x"]


def test_invalid_days_of_week_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "cities.csv").write_text("id,name,lat,lon\n", encoding="utf-8")
    (tmp_path / "stops.csv").write_text("id,name,lat,lon,city_id\n", encoding="utf-8")
    (tmp_path / "legs.csv").write_text(
        "id,from_stop_id,to_stop_id,transport_type,departure_time,arrival_time,days_of_week\n"
        "l1,a,b,bus,08:00,09:00,12345\n",
        encoding="utf-8",
    )

    with pytest.raises(ValueError):
        LocalReferenceRepository(base_path=tmp_path).get_all_legs()
