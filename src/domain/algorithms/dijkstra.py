"""Lexicographic Dijkstra over a precomputed adjacency index.

Paths are ranked by (total duration, total distance, number of edges). When
`max_edges` is given, the number of edges used so far is part of the search
state, so the bounded problem is solved exactly instead of rejecting an
unbounded answer that happens to be too long.
"""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass
from typing import Callable, Collection, Iterable

from src.domain.models import GraphEdge

NeighborsFn = Callable[[str], Iterable[GraphEdge]]
EdgeFilter = Callable[[GraphEdge], bool]


@dataclass(frozen=True, slots=True, order=True)
class PathCost:
    duration: float
    distance: float
    edges: int

    @property
    def transfers(self) -> int:
        return max(0, self.edges - 1)


def path_cost(edges: Iterable[GraphEdge]) -> PathCost:
    duration = 0.0
    distance = 0.0
    count = 0
    for edge in edges:
        duration += edge.weight
        distance += edge.distance_km
        count += 1
    return PathCost(duration=duration, distance=distance, edges=count)


def shortest_path(
    neighbors: NeighborsFn,
    sources: Iterable[str],
    targets: Iterable[str],
    *,
    max_edges: int | None = None,
    edge_filter: EdgeFilter | None = None,
    blocked: Collection[str] = (),
) -> list[GraphEdge] | None:
    """Return the best edge path from any source to any target, or None.

    A source that is also a target yields an empty path. Nodes in `blocked`
    are never entered.
    """

    if max_edges is not None and max_edges < 0:
        raise ValueError("max_edges must be >= 0")

    target_set = set(targets)
    bounded = max_edges is not None
    counter = itertools.count()

    State = tuple[str, int]
    best: dict[State, tuple[float, float, int]] = {}
    previous: dict[State, tuple[State, GraphEdge]] = {}
    heap: list[tuple[float, float, int, int, str]] = []

    for source in set(sources):
        state = (source, 0)
        best[state] = (0.0, 0.0, 0)
        heapq.heappush(heap, (0.0, 0.0, 0, next(counter), source))

    settled: set[State] = set()
    while heap:
        duration, distance, used, _, node = heapq.heappop(heap)
        state = (node, used if bounded else 0)
        if state in settled:
            continue
        settled.add(state)

        if node in target_set:
            return _reconstruct(previous, state)

        if bounded and used >= max_edges:  # type: ignore[operator]
            continue

        for edge in neighbors(node):
            if edge.to_id in blocked:
                continue
            if edge_filter is not None and not edge_filter(edge):
                continue

            next_used = used + 1
            next_state = (edge.to_id, next_used if bounded else 0)
            if next_state in settled:
                continue

            key = (duration + edge.weight, distance + edge.distance_km, next_used)
            current = best.get(next_state)
            if current is not None and current <= key:
                continue

            best[next_state] = key
            previous[next_state] = (state, edge)
            heapq.heappush(heap, (key[0], key[1], key[2], next(counter), edge.to_id))

    return None


def _reconstruct(
    previous: dict[tuple[str, int], tuple[tuple[str, int], GraphEdge]],
    state: tuple[str, int],
) -> list[GraphEdge]:
    path: list[GraphEdge] = []
    while state in previous:
        state, edge = previous[state]
        path.append(edge)
    path.reverse()
    return path
