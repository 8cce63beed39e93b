from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import GraphEdge, GraphMetadata, GraphSnapshot


class IGraphRepository(ABC):
    """Persistence port for versioned, immutable transport graphs.

    Readers should call `snapshot()` once per request and query the returned
    object; the convenience lookups below always answer against whatever
    version is current at call time.
    """

    @abstractmethod
    def snapshot(self) -> GraphSnapshot | None:
        """Return the currently published graph version, if any."""

    @abstractmethod
    def publish(self, snapshot: GraphSnapshot) -> None:
        """Make `snapshot` the current version (atomic swap)."""

    def get_graph_version(self) -> str | None:
        current = self.snapshot()
        return current.version if current is not None else None

    def get_graph_metadata(self) -> GraphMetadata | None:
        current = self.snapshot()
        return current.metadata if current is not None else None

    def has_node(self, node_id: str) -> bool:
        current = self.snapshot()
        return current is not None and current.has_node(node_id)

    def get_neighbors(self, node_id: str) -> tuple[GraphEdge, ...]:
        current = self.snapshot()
        return current.get_neighbors(node_id) if current is not None else ()

    def get_edge_weight(self, from_id: str, to_id: str) -> float | None:
        current = self.snapshot()
        return current.get_edge_weight(from_id, to_id) if current is not None else None

    def get_edge_metadata(self, from_id: str, to_id: str) -> GraphEdge | None:
        current = self.snapshot()
        if current is None:
            return None
        return current.get_edge_metadata(from_id, to_id)
