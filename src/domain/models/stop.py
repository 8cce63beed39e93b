from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import GeoPoint


class StopKind(str, Enum):
    REAL = "real"
    VIRTUAL = "virtual"


@dataclass(frozen=True, slots=True)
class Stop:
    id: str
    name: str
    location: GeoPoint
    city_id: str | None = None
    kind: StopKind = StopKind.REAL
    is_airport: bool = False
    is_railway_station: bool = False
    is_hub: bool = False
