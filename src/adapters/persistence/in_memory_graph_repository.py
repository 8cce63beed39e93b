from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from src.app.ports.output import IGraphRepository
from src.domain.models import GraphSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InMemoryGraphRepository(IGraphRepository):
    """Process-local graph store.

    Readers take the current reference without locking; `publish` swaps it
    under a lock so concurrent publishers never interleave.
    """

    _current: GraphSnapshot | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def snapshot(self) -> GraphSnapshot | None:
        return self._current

    def publish(self, snapshot: GraphSnapshot) -> None:
        with self._lock:
            previous = self._current
            self._current = snapshot
        logger.info(
            "Graph %s published (previous: %s)",
            snapshot.version,
            previous.version if previous is not None else None,
        )
