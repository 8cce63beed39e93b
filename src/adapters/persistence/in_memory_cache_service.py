from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any

from src.app.ports.output import ICacheService


@dataclass(slots=True)
class InMemoryCacheService(ICacheService):
    """Lock-guarded dict with monotonic expiry. Per-process only."""

    max_entries: int = 10_000
    _entries: dict[str, tuple[float, Any]] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, key: str) -> Any | None:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = time.monotonic()
        with self._lock:
            if len(self._entries) >= self.max_entries and key not in self._entries:
                self._evict(now)
            self._entries[key] = (now + ttl_seconds, value)

    def _evict(self, now: float) -> None:
        expired = [k for k, (exp, _) in self._entries.items() if exp <= now]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self.max_entries:
            # Drop the entry closest to expiry.
            oldest = min(self._entries, key=lambda k: self._entries[k][0])
            del self._entries[oldest]
