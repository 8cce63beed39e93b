from __future__ import annotations

import re
from dataclasses import dataclass

from .geo import GeoPoint

CITY_ID_PATTERN = re.compile(r"^[a-z0-9_-]+$")
MAX_CITY_ID_LENGTH = 50


def is_valid_city_id(city_id: str | None) -> bool:
    if not city_id or len(city_id) > MAX_CITY_ID_LENGTH:
        return False
    return bool(CITY_ID_PATTERN.match(city_id))


def normalize_city_name(name: str | None) -> str:
    """Lowercase, fold 'ё' into 'е' and drop everything but letters/digits."""

    value = (name or "").strip().lower().replace("ё", "е")
    return "".join(ch for ch in value if ch.isalnum())


@dataclass(frozen=True, slots=True)
class City:
    id: str
    name: str
    location: GeoPoint
    region: str | None = None
    is_hub: bool = False
    has_airport: bool = False
    has_train_station: bool = False
    has_bus_station: bool = False
    has_ferry_pier: bool = False
    has_winter_road: bool = False

    @property
    def normalized_name(self) -> str:
        return normalize_city_name(self.name)
