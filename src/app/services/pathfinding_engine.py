from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from src.app.ports.output import IGraphRepository
from src.domain.algorithms.dijkstra import PathCost, path_cost, shortest_path
from src.domain.exceptions import GraphUnavailable, NoPathFound, NoStopsForCity
from src.domain.models import GraphEdge, GraphSnapshot


@dataclass(frozen=True, slots=True)
class PathResult:
    edges: tuple[GraphEdge, ...]
    graph_version: str
    cost: PathCost

    @property
    def transfers(self) -> int:
        return self.cost.transfers

    @property
    def nodes(self) -> tuple[str, ...]:
        if not self.edges:
            return ()
        return (self.edges[0].from_id,) + tuple(e.to_id for e in self.edges)


@dataclass(slots=True)
class PathfindingEngine:
    """Shortest-path search over one pinned graph version.

    Paths are ranked by duration, then distance, then fewer transfers.
    """

    graph_repository: IGraphRepository

    def pin(self) -> GraphSnapshot:
        snapshot = self.graph_repository.snapshot()
        if snapshot is None:
            raise GraphUnavailable(
                "Graph not available. Please run the graph builder worker."
            )
        return snapshot

    def search(
        self,
        from_node: str,
        to_node: str,
        day: date | None = None,
        max_transfers: int | None = None,
        *,
        snapshot: GraphSnapshot | None = None,
    ) -> PathResult:
        return self.search_many(
            (from_node,), (to_node,), day, max_transfers, snapshot=snapshot
        )

    def search_many(
        self,
        from_nodes: Iterable[str],
        to_nodes: Iterable[str],
        day: date | None = None,
        max_transfers: int | None = None,
        *,
        snapshot: GraphSnapshot | None = None,
    ) -> PathResult:
        graph = snapshot or self.pin()
        from_list = list(from_nodes)
        to_list = list(to_nodes)
        sources = [n for n in from_list if graph.has_node(n)]
        targets = [n for n in to_list if graph.has_node(n)]
        if not sources:
            raise NoStopsForCity(",".join(from_list), "Origin is not in the graph")
        if not targets:
            raise NoStopsForCity(",".join(to_list), "Destination is not in the graph")
        if set(sources) & set(targets):
            raise NoPathFound("Origin and destination resolve to the same stop")

        if max_transfers is not None and max_transfers < 0:
            raise ValueError("max_transfers must be >= 0")
        max_edges = max_transfers + 1 if max_transfers is not None else None

        edges = shortest_path(
            graph.get_neighbors,
            sources,
            targets,
            max_edges=max_edges,
            edge_filter=_season_filter(day),
        )
        if edges is None:
            limit = (
                f" within {max_transfers} transfers" if max_transfers is not None else ""
            )
            raise NoPathFound(f"No path found{limit}")

        return PathResult(
            edges=tuple(edges), graph_version=graph.version, cost=path_cost(edges)
        )


def _season_filter(day: date | None):
    if day is None:
        return None

    def _available(edge: GraphEdge) -> bool:
        return edge.season.is_available_on(day)

    return _available
