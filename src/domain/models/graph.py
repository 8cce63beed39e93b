from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from .transport import Season, TransportType


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """Directed connection between two graph nodes (stops).

    `weight` is the travel duration in minutes and drives the search.
    """

    from_id: str
    to_id: str
    weight: float
    distance_km: float = 0.0
    transport_type: TransportType = TransportType.UNKNOWN
    route_id: str | None = None
    season: Season = Season.ALL

    @property
    def neighbor_id(self) -> str:
        return self.to_id


@dataclass(frozen=True, slots=True)
class GraphMetadata:
    version: str
    node_count: int
    edge_count: int
    built_at: datetime | None = None
    build_duration_ms: int = 0
    dataset_version: str | None = None


def _edge_rank(edge: GraphEdge) -> tuple[float, float]:
    return (edge.weight, edge.distance_km)


@dataclass(frozen=True, slots=True)
class GraphSnapshot:
    """One published, immutable version of the transport graph.

    The adjacency and best-edge indexes are computed once at construction;
    lookups never rebuild them. Use `GraphSnapshot.build` to create one.
    """

    metadata: GraphMetadata
    nodes: frozenset[str]
    adjacency: Mapping[str, tuple[GraphEdge, ...]] = field(repr=False)
    best_edges: Mapping[tuple[str, str], GraphEdge] = field(repr=False)

    @classmethod
    def build(
        cls,
        *,
        version: str,
        nodes: Iterable[str],
        edges: Iterable[GraphEdge],
        built_at: datetime | None = None,
        build_duration_ms: int = 0,
        dataset_version: str | None = None,
    ) -> "GraphSnapshot":
        node_set = set(nodes)
        grouped: dict[str, list[GraphEdge]] = {}
        best: dict[tuple[str, str], GraphEdge] = {}
        edge_count = 0

        for edge in edges:
            node_set.add(edge.from_id)
            node_set.add(edge.to_id)
            grouped.setdefault(edge.from_id, []).append(edge)
            edge_count += 1

            key = (edge.from_id, edge.to_id)
            current = best.get(key)
            if current is None or _edge_rank(edge) < _edge_rank(current):
                best[key] = edge

        adjacency = {
            node: tuple(sorted(items, key=_edge_rank)) for node, items in grouped.items()
        }

        metadata = GraphMetadata(
            version=version,
            node_count=len(node_set),
            edge_count=edge_count,
            built_at=built_at,
            build_duration_ms=build_duration_ms,
            dataset_version=dataset_version,
        )
        return cls(
            metadata=metadata,
            nodes=frozenset(node_set),
            adjacency=MappingProxyType(adjacency),
            best_edges=MappingProxyType(best),
        )

    @property
    def version(self) -> str:
        return self.metadata.version

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_neighbors(self, node_id: str) -> tuple[GraphEdge, ...]:
        return self.adjacency.get(node_id, ())

    def get_edge_weight(self, from_id: str, to_id: str) -> float | None:
        edge = self.best_edges.get((from_id, to_id))
        return edge.weight if edge is not None else None

    def get_edge_metadata(self, from_id: str, to_id: str) -> GraphEdge | None:
        return self.best_edges.get((from_id, to_id))

    def iter_edges(self) -> Iterable[GraphEdge]:
        for edges in self.adjacency.values():
            yield from edges
