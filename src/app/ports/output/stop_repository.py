from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Stop


class IStopRepository(ABC):
    """Read-only access to stop reference data."""

    @abstractmethod
    def get_all_real_stops(self) -> tuple[Stop, ...]:
        """Return every physical stop (airport, station, pier...)."""

    @abstractmethod
    def get_all_virtual_stops(self) -> tuple[Stop, ...]:
        """Return synthetic city-level stops used where no real stop exists."""

    @abstractmethod
    def find_real_stop_by_id(self, stop_id: str) -> Stop | None: ...

    @abstractmethod
    def find_virtual_stop_by_id(self, stop_id: str) -> Stop | None: ...

    def find_stop_by_id(self, stop_id: str) -> Stop | None:
        return self.find_real_stop_by_id(stop_id) or self.find_virtual_stop_by_id(
            stop_id
        )
