from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.domain.models import GeoPoint


@dataclass(frozen=True, slots=True)
class RoadRoute:
    points: tuple[GeoPoint, ...]
    distance_m: float
    duration_s: float
    from_cache: bool = False


class IRoadRoutingProvider(ABC):
    """Port for an external road router (OSRM-compatible)."""

    @abstractmethod
    async def get_route(
        self, *, start: GeoPoint, end: GeoPoint, profile: str = "driving"
    ) -> RoadRoute:
        """Return road geometry or raise ExternalServiceDegraded."""
