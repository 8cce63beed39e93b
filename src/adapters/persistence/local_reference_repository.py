from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass, field
from datetime import date, time
from pathlib import Path
from typing import Iterator

from src.app.ports.output import ICityRepository, IFlightRepository, IStopRepository
from src.domain.models import (
    ALL_DAYS,
    City,
    GeoPoint,
    Hub,
    HubLevel,
    ScheduledLeg,
    Season,
    Stop,
    StopKind,
    TransportType,
)

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "y"}


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in _TRUE


def _text(raw: str | None) -> str | None:
    value = (raw or "").strip()
    return value or None


def _parse_time(raw: str) -> time:
    # HH:MM or HH:MM:SS
    parts = [int(p) for p in raw.strip().split(":")]
    return time(parts[0], parts[1], parts[2] if len(parts) > 2 else 0)


def _parse_days(raw: str | None) -> int:
    """Seven '0'/'1' characters, Monday first. Empty means every day."""

    value = (raw or "").strip()
    if not value:
        return ALL_DAYS
    if len(value) != 7 or set(value) - {"0", "1"}:
        raise ValueError(f"Invalid days_of_week: {value!r}")
    return sum(1 << i for i, ch in enumerate(value) if ch == "1")


def _rows(path: Path) -> Iterator[dict[str, str]]:
    with path.open("r", encoding="utf-8", newline="") as fp:
        yield from csv.DictReader(fp)


@dataclass(slots=True)
class _ReferenceData:
    cities: tuple[City, ...]
    hubs: tuple[Hub, ...]
    real_stops: dict[str, Stop]
    virtual_stops: dict[str, Stop]
    legs: tuple[ScheduledLeg, ...]
    legs_by_pair: dict[tuple[str, str], list[ScheduledLeg]]


@dataclass(slots=True)
class LocalReferenceRepository(IStopRepository, IFlightRepository, ICityRepository):
    """Cities, stops, hubs and timetable loaded from a directory of CSV files.

    Files: cities.csv, stops.csv, legs.csv and optionally hubs.csv. Cities
    without a real stop get a virtual `virtual-{city_id}` stop at the city
    centre.

    Env vars:
      - REFERENCE_DATA_PATH: directory with the CSV files (default: data/reference)
    """

    base_path: str | Path | None = None
    _data: _ReferenceData | None = field(default=None, init=False, repr=False)

    def _base(self) -> Path:
        value = self.base_path or os.getenv("REFERENCE_DATA_PATH") or "data/reference"
        return Path(value)

    def _load(self) -> _ReferenceData:
        if self._data is not None:
            return self._data

        base = self._base()
        cities = tuple(self._read_cities(base / "cities.csv"))
        real_stops = {s.id: s for s in self._read_stops(base / "stops.csv")}

        served = {s.city_id for s in real_stops.values()}
        virtual_stops = {
            f"virtual-{c.id}": Stop(
                id=f"virtual-{c.id}",
                name=c.name,
                location=c.location,
                city_id=c.id,
                kind=StopKind.VIRTUAL,
            )
            for c in cities
            if c.id not in served
        }

        hubs_path = base / "hubs.csv"
        hubs = tuple(self._read_hubs(hubs_path, real_stops)) if hubs_path.exists() else ()

        legs = tuple(self._read_legs(base / "legs.csv"))
        by_pair: dict[tuple[str, str], list[ScheduledLeg]] = {}
        for leg in legs:
            by_pair.setdefault((leg.from_stop_id, leg.to_stop_id), []).append(leg)

        logger.info(
            "Loaded reference data from %s: %d cities, %d stops, %d legs",
            base,
            len(cities),
            len(real_stops) + len(virtual_stops),
            len(legs),
        )
        self._data = _ReferenceData(
            cities=cities,
            hubs=hubs,
            real_stops=real_stops,
            virtual_stops=virtual_stops,
            legs=legs,
            legs_by_pair=by_pair,
        )
        return self._data

    def _read_cities(self, path: Path) -> Iterator[City]:
        for row in _rows(path):
            city_id = (row.get("id") or "").strip()
            if not city_id:
                continue
            yield City(
                id=city_id,
                name=(row.get("name") or city_id).strip(),
                location=GeoPoint(lat=float(row["lat"]), lon=float(row["lon"])),
                region=_text(row.get("region")),
                is_hub=_flag(row.get("is_hub")),
                has_airport=_flag(row.get("airport")),
                has_train_station=_flag(row.get("train_station")),
                has_bus_station=_flag(row.get("bus_station")),
                has_ferry_pier=_flag(row.get("ferry_pier")),
                has_winter_road=_flag(row.get("winter_road")),
            )

    def _read_stops(self, path: Path) -> Iterator[Stop]:
        for row in _rows(path):
            stop_id = (row.get("id") or "").strip()
            if not stop_id:
                continue
            yield Stop(
                id=stop_id,
                name=(row.get("name") or stop_id).strip(),
                location=GeoPoint(lat=float(row["lat"]), lon=float(row["lon"])),
                city_id=_text(row.get("city_id")),
                is_airport=_flag(row.get("is_airport")),
                is_railway_station=_flag(row.get("is_railway_station")),
                is_hub=_flag(row.get("is_hub")),
            )

    def _read_hubs(self, path: Path, stops: dict[str, Stop]) -> Iterator[Hub]:
        for row in _rows(path):
            stop_id = (row.get("stop_id") or "").strip()
            stop = stops.get(stop_id)
            if stop is None:
                logger.warning("Skipping hub for unknown stop %s", stop_id)
                continue
            yield Hub(
                stop_id=stop_id,
                name=(row.get("name") or stop.name).strip(),
                level=HubLevel((row.get("level") or "regional").strip().lower()),
                location=stop.location,
                airport_code=_text(row.get("airport_code")),
            )

    def _read_legs(self, path: Path) -> Iterator[ScheduledLeg]:
        for row in _rows(path):
            leg_id = (row.get("id") or "").strip()
            if not leg_id:
                continue
            price = _text(row.get("price"))
            capacity = _text(row.get("capacity"))
            yield ScheduledLeg(
                leg_id=leg_id,
                from_stop_id=row["from_stop_id"].strip(),
                to_stop_id=row["to_stop_id"].strip(),
                transport_type=TransportType.parse(row.get("transport_type")),
                departure_time=_parse_time(row["departure_time"]),
                arrival_time=_parse_time(row["arrival_time"]),
                days_of_week=_parse_days(row.get("days_of_week")),
                route_id=_text(row.get("route_id")),
                price=float(price) if price else None,
                capacity=int(capacity) if capacity else None,
                season=Season((row.get("season") or "all").strip().lower()),
            )

    def get_all_real_stops(self) -> tuple[Stop, ...]:
        return tuple(self._load().real_stops.values())

    def get_all_virtual_stops(self) -> tuple[Stop, ...]:
        return tuple(self._load().virtual_stops.values())

    def find_real_stop_by_id(self, stop_id: str) -> Stop | None:
        return self._load().real_stops.get(stop_id)

    def find_virtual_stop_by_id(self, stop_id: str) -> Stop | None:
        return self._load().virtual_stops.get(stop_id)

    def get_flights_between_stops(
        self, from_stop_id: str, to_stop_id: str, day: date
    ) -> list[ScheduledLeg]:
        legs = self._load().legs_by_pair.get((from_stop_id, to_stop_id), [])
        return [leg for leg in legs if leg.runs_on(day)]

    def get_all_legs(self) -> tuple[ScheduledLeg, ...]:
        return self._load().legs

    def list_cities(self) -> tuple[City, ...]:
        return self._load().cities

    def list_hubs(self) -> tuple[Hub, ...]:
        return self._load().hubs
