from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from src.domain.models import ScheduledLeg


class IFlightRepository(ABC):
    """Timetable port: scheduled departures for every transport mode."""

    @abstractmethod
    def get_flights_between_stops(
        self, from_stop_id: str, to_stop_id: str, day: date
    ) -> list[ScheduledLeg]:
        """Return legs between two stops that are candidates for `day`."""

    @abstractmethod
    def get_all_legs(self) -> tuple[ScheduledLeg, ...]:
        """Return the whole timetable (used when building the graph)."""
