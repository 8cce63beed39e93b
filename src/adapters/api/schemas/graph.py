from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class GraphStatusSchema(BaseModel):
    available: bool
    version: str | None = None
    node_count: int = 0
    edge_count: int = 0
    built_at: datetime | None = None
    build_duration_ms: int | None = None
    dataset_version: str | None = None


class ProposedConnectionSchema(BaseModel):
    from_city: str
    to_city: str
    transport_type: str
    distance_km: float
    duration_min: int
    price: int


class GraphSizeSchema(BaseModel):
    nodes: int
    edges: int


class ConnectivitySchema(BaseModel):
    is_connected: bool
    component_count: int
    components: list[list[str]] = []
    isolated_cities: list[str] = []
    added_connections: list[ProposedConnectionSchema] = []
    graph: GraphSizeSchema
