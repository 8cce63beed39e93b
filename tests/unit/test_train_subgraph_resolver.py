from __future__ import annotations

import pytest

from src.app.services.train_subgraph_resolver import TrainSubgraphResolver
from src.domain.exceptions import NoPathFound
from src.domain.models import TransportType
from tests.unit.fakes import edge, snapshot_of


def _line():
    return snapshot_of(
        edge("r1", "r2", 120, distance=100),
        edge("r2", "r3", 120, distance=100),
        edge("r3", "r4", 120, distance=100),
        edge("r4", "r5", 120, distance=100),
        # Only rail edges make it into the subgraph.
        edge("r1", "r5", 60, distance=300, mode=TransportType.AIRPLANE),
    )


def test_builds_rail_only_adjacency() -> None:
    resolver = TrainSubgraphResolver.from_snapshot(_line())

    assert resolver.stations == frozenset({"r1", "r2", "r3", "r4", "r5"})
    assert not resolver.has_connection("r1", "r5")
    assert resolver.has_connection("r1", "r2")
    assert [e.from_id for e in resolver.get_connections_to("r3")] == ["r2"]
    assert [e.to_id for e in resolver.get_connections_from("r1")] == ["r2"]
    assert resolver.get_connections_from("r5") == ()


def test_parallel_connections_keep_the_fastest() -> None:
    resolver = TrainSubgraphResolver.from_edges(
        [edge("a", "b", 200, route_id="slow"), edge("a", "b", 90, route_id="fast")]
    )
    assert resolver.get_connection("a", "b").route_id == "fast"


def test_transfer_bound_is_enforced() -> None:
    resolver = TrainSubgraphResolver.from_snapshot(_line())

    with pytest.raises(NoPathFound):
        resolver.find_shortest_path("r1", "r5", max_transfers=2)

    path = resolver.find_shortest_path("r1", "r5", max_transfers=3)
    assert path.stations == ("r1", "r2", "r3", "r4", "r5")
    assert path.transfers == 3
    assert path.total_distance_km == 400
    assert path.total_duration_min == 480


def test_same_station_is_an_empty_path() -> None:
    resolver = TrainSubgraphResolver.from_snapshot(_line())
    path = resolver.find_shortest_path("r2", "r2")
    assert path.connections == ()
    assert path.transfers == 0


def test_unknown_station_raises() -> None:
    resolver = TrainSubgraphResolver.from_snapshot(_line())
    with pytest.raises(NoPathFound):
        resolver.find_shortest_path("r1", "moscow")


def test_find_best_between_station_sets() -> None:
    resolver = TrainSubgraphResolver.from_snapshot(_line())

    path = resolver.find_best_between(["r1", "r2"], ["r4", "r5"], max_transfers=5)

    assert path.stations == ("r2", "r3", "r4")
