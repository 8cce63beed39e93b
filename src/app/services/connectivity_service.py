from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import networkx as nx

from src.app.ports.output import ICityRepository, IGraphRepository, IStopRepository
from src.domain.algorithms.geo_utils import haversine_distance_km
from src.domain.exceptions import GraphUnavailable
from src.domain.models import City, PriceContext, TransportType

from .price_calculator import PriceCalculator

logger = logging.getLogger(__name__)

AIR_LINK_MIN_KM = 300.0

# Rough door-to-door speeds used to estimate proposed links.
ESTIMATED_SPEED_KMH = {
    TransportType.AIRPLANE: 700.0,
    TransportType.BUS: 60.0,
}
AIR_OVERHEAD_MIN = 60


@dataclass(frozen=True, slots=True)
class ProposedConnection:
    from_city: str
    to_city: str
    transport_type: TransportType
    distance_km: float
    duration_min: int
    price: int


@dataclass(frozen=True, slots=True)
class ConnectivityReport:
    is_connected: bool
    component_count: int
    components: tuple[tuple[str, ...], ...]
    isolated_cities: tuple[str, ...]
    added_connections: tuple[ProposedConnection, ...]
    node_count: int
    edge_count: int


@dataclass(slots=True)
class ConnectivityService:
    """City-level connectivity of the current graph, with proposed links.

    The report describes the graph as published. Proposals are suggestions
    for the data team; they are never added to the graph.
    """

    graph_repository: IGraphRepository
    city_repository: ICityRepository
    stop_repository: IStopRepository
    price_calculator: PriceCalculator = field(default_factory=PriceCalculator)

    def city_graph(self) -> nx.Graph:
        snapshot = self.graph_repository.snapshot()
        if snapshot is None:
            raise GraphUnavailable("Graph not available. Please run the graph builder worker.")

        stops = (
            *self.stop_repository.get_all_real_stops(),
            *self.stop_repository.get_all_virtual_stops(),
        )
        city_of = {s.id: s.city_id for s in stops if s.city_id}

        graph = nx.Graph()
        graph.add_nodes_from(c.id for c in self.city_repository.list_cities())
        for edge in snapshot.iter_edges():
            a = city_of.get(edge.from_id)
            b = city_of.get(edge.to_id)
            if a and b and a != b and a in graph and b in graph:
                graph.add_edge(a, b)
        return graph

    def connectivity(self) -> ConnectivityReport:
        graph = self.city_graph()
        cities = {c.id: c for c in self.city_repository.list_cities()}

        components: list[tuple[str, ...]] = []
        isolated: list[str] = []
        for nodes in sorted(nx.connected_components(graph), key=lambda c: (-len(c), min(c))):
            if len(nodes) == 1:
                isolated.extend(nodes)
            else:
                components.append(tuple(sorted(nodes)))

        added: list[ProposedConnection] = []
        hub_cities = self._hub_city_ids(cities.values())
        for city_id in isolated:
            proposal = self._link_isolated(cities[city_id], cities, hub_cities)
            if proposal is not None:
                added.append(proposal)
        for left, right in zip(components, components[1:]):
            proposal = self._link_components(left, right, cities)
            if proposal is not None:
                added.append(proposal)

        is_connected = len(components) <= 1 and not isolated
        if not is_connected:
            logger.info(
                "Graph has %d components and %d isolated cities",
                len(components),
                len(isolated),
            )
        return ConnectivityReport(
            is_connected=is_connected,
            component_count=len(components) + len(isolated),
            components=tuple(components),
            isolated_cities=tuple(sorted(isolated)),
            added_connections=tuple(added),
            node_count=graph.number_of_nodes(),
            edge_count=graph.number_of_edges(),
        )

    def _hub_city_ids(self, cities: Iterable[City]) -> set[str]:
        ids = {c.id for c in cities if c.is_hub}
        for hub in self.city_repository.list_hubs():
            stop = self.stop_repository.find_stop_by_id(hub.stop_id)
            if stop is not None and stop.city_id:
                ids.add(stop.city_id)
        return ids

    def _link_isolated(
        self, city: City, cities: dict[str, City], hub_cities: set[str]
    ) -> ProposedConnection | None:
        others = [c for c in cities.values() if c.id != city.id]
        hubs = [c for c in others if c.id in hub_cities]
        if hubs:
            return self._propose(city, _nearest(city, hubs), TransportType.AIRPLANE)

        served = [c for c in others if c.has_airport or c.has_train_station or c.has_bus_station]
        target = _nearest(city, served or others) if others else None
        if target is None:
            return None
        return self._propose(city, target, self._mode_for(city, target))

    def _link_components(
        self, left: Sequence[str], right: Sequence[str], cities: dict[str, City]
    ) -> ProposedConnection | None:
        best: tuple[float, City, City] | None = None
        for a_id in left:
            for b_id in right:
                a, b = cities.get(a_id), cities.get(b_id)
                if a is None or b is None:
                    continue
                d = haversine_distance_km(a.location, b.location)
                if best is None or d < best[0]:
                    best = (d, a, b)
        if best is None:
            return None
        _, a, b = best
        return self._propose(a, b, self._mode_for(a, b))

    def _mode_for(self, a: City, b: City) -> TransportType:
        if haversine_distance_km(a.location, b.location) > AIR_LINK_MIN_KM:
            return TransportType.AIRPLANE
        return TransportType.BUS

    def _propose(self, a: City, b: City, mode: TransportType) -> ProposedConnection:
        distance = haversine_distance_km(a.location, b.location)
        duration = distance / ESTIMATED_SPEED_KMH[mode] * 60.0
        if mode is TransportType.AIRPLANE:
            duration += AIR_OVERHEAD_MIN
        price = self.price_calculator.calculate_base_price(
            mode, PriceContext(distance_km=distance)
        )
        return ProposedConnection(
            from_city=a.id,
            to_city=b.id,
            transport_type=mode,
            distance_km=round(distance, 1),
            duration_min=max(1, round(duration)),
            price=price,
        )


def _nearest(city: City, candidates: Sequence[City]) -> City:
    return min(
        candidates, key=lambda c: (haversine_distance_km(city.location, c.location), c.id)
    )
