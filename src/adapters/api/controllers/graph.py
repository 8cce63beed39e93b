from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_connectivity_service, get_graph_repository
from src.adapters.api.schemas.graph import (
    ConnectivitySchema,
    GraphSizeSchema,
    GraphStatusSchema,
    ProposedConnectionSchema,
)
from src.app.ports.output import IGraphRepository
from src.app.services.connectivity_service import ConnectivityService

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("/status", response_model=GraphStatusSchema)
def graph_status(
    repository: IGraphRepository = Depends(get_graph_repository),
) -> GraphStatusSchema:
    meta = repository.get_graph_metadata()
    if meta is None:
        return GraphStatusSchema(available=False)
    return GraphStatusSchema(
        available=True,
        version=meta.version,
        node_count=meta.node_count,
        edge_count=meta.edge_count,
        built_at=meta.built_at,
        build_duration_ms=meta.build_duration_ms,
        dataset_version=meta.dataset_version,
    )


@router.get("/connectivity", response_model=ConnectivitySchema)
def graph_connectivity(
    service: ConnectivityService = Depends(get_connectivity_service),
) -> ConnectivitySchema:
    report = service.connectivity()
    return ConnectivitySchema(
        is_connected=report.is_connected,
        component_count=report.component_count,
        components=[list(c) for c in report.components],
        isolated_cities=list(report.isolated_cities),
        added_connections=[
            ProposedConnectionSchema(
                from_city=p.from_city,
                to_city=p.to_city,
                transport_type=p.transport_type.value,
                distance_km=p.distance_km,
                duration_min=p.duration_min,
                price=p.price,
            )
            for p in report.added_connections
        ],
        graph=GraphSizeSchema(nodes=report.node_count, edges=report.edge_count),
    )
