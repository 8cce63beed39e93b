from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import City, Hub


class ICityRepository(ABC):
    """City and hub reference data."""

    @abstractmethod
    def list_cities(self) -> tuple[City, ...]: ...

    @abstractmethod
    def list_hubs(self) -> tuple[Hub, ...]: ...
