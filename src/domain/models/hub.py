from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import GeoPoint


class HubLevel(str, Enum):
    FEDERAL = "federal"
    REGIONAL = "regional"


@dataclass(frozen=True, slots=True)
class Hub:
    """A major interchange used to route traffic away from poorly served stops."""

    stop_id: str
    name: str
    level: HubLevel
    location: GeoPoint
    airport_code: str | None = None

    @property
    def rank(self) -> int:
        return 0 if self.level is HubLevel.FEDERAL else 1
