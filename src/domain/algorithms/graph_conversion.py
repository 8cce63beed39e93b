from __future__ import annotations

from datetime import datetime
from typing import Any

import networkx as nx

from src.domain.models import GraphEdge, GraphSnapshot, Season, TransportType


def snapshot_to_networkx(snapshot: GraphSnapshot) -> nx.MultiDiGraph:
    """Export a snapshot as a MultiDiGraph (GraphML/pickle friendly attributes)."""

    meta = snapshot.metadata
    graph = nx.MultiDiGraph(
        version=meta.version,
        built_at=meta.built_at.isoformat() if meta.built_at else "",
        build_duration_ms=int(meta.build_duration_ms),
        dataset_version=meta.dataset_version or "",
    )
    graph.add_nodes_from(sorted(snapshot.nodes))
    for edge in snapshot.iter_edges():
        graph.add_edge(
            edge.from_id,
            edge.to_id,
            weight=float(edge.weight),
            distance_km=float(edge.distance_km),
            transport_type=edge.transport_type.value,
            route_id=edge.route_id or "",
            season=edge.season.value,
        )
    return graph


def snapshot_from_networkx(graph: Any, *, version: str | None = None) -> GraphSnapshot:
    attrs = dict(getattr(graph, "graph", {}) or {})
    resolved_version = version or str(attrs.get("version") or "")
    if not resolved_version:
        raise RuntimeError("Graph has no version attribute")

    built_raw = attrs.get("built_at") or None
    built_at = datetime.fromisoformat(built_raw) if built_raw else None

    edges: list[GraphEdge] = []
    for u, v, data in graph.edges(data=True):
        edges.append(
            GraphEdge(
                from_id=str(u),
                to_id=str(v),
                # GraphML may hand numeric attributes back as strings.
                weight=float(data.get("weight", 0.0)),
                distance_km=float(data.get("distance_km", 0.0)),
                transport_type=TransportType.parse(data.get("transport_type")),
                route_id=(str(data.get("route_id") or "") or None),
                season=Season(data.get("season") or Season.ALL.value),
            )
        )

    return GraphSnapshot.build(
        version=resolved_version,
        nodes=(str(n) for n in graph.nodes),
        edges=edges,
        built_at=built_at,
        build_duration_ms=int(attrs.get("build_duration_ms") or 0),
        dataset_version=(str(attrs.get("dataset_version") or "") or None),
    )
