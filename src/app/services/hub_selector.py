from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from itertools import permutations
from typing import Sequence

from src.domain.algorithms.dijkstra import path_cost, shortest_path
from src.domain.algorithms.geo_utils import haversine_distance_km
from src.domain.exceptions import NoPathFound
from src.domain.models import GraphEdge, GraphSnapshot, Hub, Stop


@dataclass(frozen=True, slots=True)
class HubSelection:
    hubs: tuple[Hub, ...]
    requires_hubs: bool
    can_be_direct: bool
    reason: str


@dataclass(slots=True)
class HubSelector:
    """Widens reachability for poorly connected stops by routing through hubs.

    A small airport is an airport stop that is not a hub and has fewer than
    `min_direct_connections` distinct outgoing neighbours in the graph.
    """

    hubs: Sequence[Hub]
    stops_by_id: dict[str, Stop] = field(default_factory=dict)
    min_direct_connections: int = 3
    max_direct_small_airport_km: float = 500.0
    long_distance_km: float = 2000.0
    max_candidate_hubs: int = 6

    def _is_hub(self, stop_id: str) -> bool:
        stop = self.stops_by_id.get(stop_id)
        if stop is not None and stop.is_hub:
            return True
        return any(h.stop_id == stop_id for h in self.hubs)

    def is_small_airport(self, snapshot: GraphSnapshot, stop_id: str) -> bool:
        stop = self.stops_by_id.get(stop_id)
        if stop is None or not stop.is_airport:
            return False
        if self._is_hub(stop_id):
            return False
        neighbours = {e.to_id for e in snapshot.get_neighbors(stop_id)}
        return len(neighbours) < self.min_direct_connections

    def select_hubs(
        self, snapshot: GraphSnapshot, from_id: str, to_id: str
    ) -> HubSelection:
        origin = self.stops_by_id.get(from_id)
        destination = self.stops_by_id.get(to_id)

        def proximity(hub: Hub) -> float:
            points = [s.location for s in (origin, destination) if s is not None]
            if not points:
                return 0.0
            return min(haversine_distance_km(hub.location, p) for p in points)

        candidates = [
            h
            for h in self.hubs
            if snapshot.has_node(h.stop_id) and h.stop_id not in (from_id, to_id)
        ]
        candidates.sort(key=lambda h: (h.rank, proximity(h), h.stop_id))

        distance_km = (
            haversine_distance_km(origin.location, destination.location)
            if origin is not None and destination is not None
            else 0.0
        )
        small = self.is_small_airport(snapshot, from_id) or self.is_small_airport(
            snapshot, to_id
        )
        direct = snapshot.get_edge_metadata(from_id, to_id) is not None

        if distance_km > self.long_distance_km:
            reason = f"Distance {distance_km:.0f} km requires a hub"
            requires = True
        elif small:
            reason = "Small airport endpoint"
            requires = True
        else:
            reason = "Direct routing possible"
            requires = False

        # A small airport may also fly straight to a hub within its region.
        feeder = (self._is_hub(from_id) or self._is_hub(to_id)) and (
            distance_km <= self.long_distance_km
        )
        can_be_direct = direct and (
            not small or distance_km <= self.max_direct_small_airport_km or feeder
        )
        return HubSelection(
            hubs=tuple(candidates),
            requires_hubs=requires,
            can_be_direct=can_be_direct,
            reason=reason,
        )

    def find_path_via_hubs(
        self,
        snapshot: GraphSnapshot,
        from_id: str,
        to_id: str,
        day: date | None = None,
        max_transfers: int | None = None,
    ) -> tuple[GraphEdge, ...]:
        """Best path from -> hub(s) -> to with at least two segments.

        Tries every single hub and every ordered pair of distinct hubs among
        the top candidates. Ranked by duration, then hub count, then distance.
        """

        selection = self.select_hubs(snapshot, from_id, to_id)
        hubs = [h.stop_id for h in selection.hubs[: self.max_candidate_hubs]]
        max_edges = max_transfers + 1 if max_transfers is not None else None

        def edge_filter(edge: GraphEdge) -> bool:
            return day is None or edge.season.is_available_on(day)

        memo: dict[tuple[str, str, int | None], list[GraphEdge] | None] = {}

        def leg(a: str, b: str, budget: int | None) -> list[GraphEdge] | None:
            key = (a, b, budget)
            if key not in memo:
                memo[key] = shortest_path(
                    snapshot.get_neighbors,
                    (a,),
                    (b,),
                    max_edges=budget,
                    edge_filter=edge_filter,
                )
            return memo[key]

        chains: list[tuple[str, ...]] = [(h,) for h in hubs]
        chains.extend(permutations(hubs, 2))

        best: tuple[tuple[float, int, float], tuple[GraphEdge, ...]] | None = None
        for chain in chains:
            waypoints = (from_id, *chain, to_id)
            hops = list(zip(waypoints, waypoints[1:]))
            if max_edges is not None and len(hops) > max_edges:
                continue
            edges: list[GraphEdge] = []
            for index, (a, b) in enumerate(hops):
                budget = None
                if max_edges is not None:
                    # Leave at least one edge for each remaining hop.
                    budget = max_edges - len(edges) - (len(hops) - index - 1)
                part = leg(a, b, budget)
                if not part:
                    edges = []
                    break
                edges.extend(part)
            if len(edges) < 2:
                continue
            visited = [edges[0].from_id] + [e.to_id for e in edges]
            if len(set(visited)) != len(visited):
                continue

            cost = path_cost(edges)
            rank = (cost.duration, len(chain), cost.distance)
            if best is None or rank < best[0]:
                best = (rank, tuple(edges))

        if best is None:
            raise NoPathFound(f"No hub route between {from_id} and {to_id}")
        return best[1]

    def hub_count(self, edges: Sequence[GraphEdge]) -> int:
        hub_ids = {h.stop_id for h in self.hubs}
        hub_ids.update(sid for sid, s in self.stops_by_id.items() if s.is_hub)
        return sum(1 for e in edges[:-1] if e.to_id in hub_ids)
