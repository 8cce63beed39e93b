from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheService(ABC):
    """Key/value cache with per-entry TTL.

    Values are JSON-compatible. `set` must store the whole value or nothing.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value or None when missing/expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value for `ttl_seconds`."""
