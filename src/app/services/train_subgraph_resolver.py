from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from src.domain.algorithms.dijkstra import path_cost, shortest_path
from src.domain.exceptions import NoPathFound
from src.domain.models import GraphEdge, GraphSnapshot, TransportType


@dataclass(frozen=True, slots=True)
class TrainPath:
    stations: tuple[str, ...]
    connections: tuple[GraphEdge, ...]
    total_distance_km: float
    total_duration_min: float

    @property
    def transfers(self) -> int:
        return count_transfers(self.connections)


def count_transfers(connections: Sequence[GraphEdge]) -> int:
    return max(0, len(connections) - 1)


@dataclass(slots=True)
class TrainSubgraphResolver:
    """Rail-only adjacency graph with transfer-bounded shortest paths.

    Parallel connections between the same pair of stations collapse into the
    fastest one.
    """

    _outgoing: dict[str, dict[str, GraphEdge]] = field(default_factory=dict)
    _incoming: dict[str, dict[str, GraphEdge]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[GraphEdge]) -> "TrainSubgraphResolver":
        resolver = cls()
        for edge in edges:
            if edge.transport_type is TransportType.TRAIN:
                resolver.add_connection(edge)
        return resolver

    @classmethod
    def from_snapshot(cls, snapshot: GraphSnapshot) -> "TrainSubgraphResolver":
        return cls.from_edges(snapshot.iter_edges())

    def add_connection(self, edge: GraphEdge) -> None:
        current = self._outgoing.get(edge.from_id, {}).get(edge.to_id)
        if current is not None and (current.weight, current.distance_km) <= (
            edge.weight,
            edge.distance_km,
        ):
            return
        self._outgoing.setdefault(edge.from_id, {})[edge.to_id] = edge
        self._incoming.setdefault(edge.to_id, {})[edge.from_id] = edge
        self._outgoing.setdefault(edge.to_id, {})

    @property
    def stations(self) -> frozenset[str]:
        return frozenset(self._outgoing)

    def get_connections_from(self, station: str) -> tuple[GraphEdge, ...]:
        return tuple(self._outgoing.get(station, {}).values())

    def get_connections_to(self, station: str) -> tuple[GraphEdge, ...]:
        return tuple(self._incoming.get(station, {}).values())

    def has_connection(self, from_station: str, to_station: str) -> bool:
        return to_station in self._outgoing.get(from_station, {})

    def get_connection(self, from_station: str, to_station: str) -> GraphEdge | None:
        return self._outgoing.get(from_station, {}).get(to_station)

    def find_shortest_path(
        self, from_station: str, to_station: str, max_transfers: int = 5
    ) -> TrainPath:
        if max_transfers < 0:
            raise ValueError("max_transfers must be >= 0")
        if from_station == to_station:
            return TrainPath(
                stations=(from_station,),
                connections=(),
                total_distance_km=0.0,
                total_duration_min=0.0,
            )
        if from_station not in self._outgoing or to_station not in self._outgoing:
            raise NoPathFound(f"No rail station {from_station!r} or {to_station!r}")

        edges = shortest_path(
            self.get_connections_from,
            (from_station,),
            (to_station,),
            max_edges=max_transfers + 1,
        )
        if edges is None:
            raise NoPathFound(
                f"No rail path from {from_station} to {to_station} "
                f"within {max_transfers} transfers"
            )

        cost = path_cost(edges)
        return TrainPath(
            stations=(from_station,) + tuple(e.to_id for e in edges),
            connections=tuple(edges),
            total_distance_km=cost.distance,
            total_duration_min=cost.duration,
        )

    def find_best_between(
        self,
        from_stations: Iterable[str],
        to_stations: Iterable[str],
        max_transfers: int = 5,
    ) -> TrainPath:
        """Best bounded path from any of `from_stations` to any of `to_stations`."""

        if max_transfers < 0:
            raise ValueError("max_transfers must be >= 0")
        sources = [s for s in from_stations if s in self._outgoing]
        targets = [s for s in to_stations if s in self._outgoing]
        edges = None
        if sources and targets and not set(sources) & set(targets):
            edges = shortest_path(
                self.get_connections_from,
                sources,
                targets,
                max_edges=max_transfers + 1,
            )
        if not edges:
            raise NoPathFound(f"No rail path within {max_transfers} transfers")

        cost = path_cost(edges)
        return TrainPath(
            stations=(edges[0].from_id,) + tuple(e.to_id for e in edges),
            connections=tuple(edges),
            total_distance_km=cost.distance,
            total_duration_min=cost.duration,
        )
