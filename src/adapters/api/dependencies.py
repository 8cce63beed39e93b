from __future__ import annotations

import logging
import os
from functools import lru_cache

from src.adapters.maps.cached_road_routing_adapter import CachedRoadRoutingAdapter
from src.adapters.maps.osrm_road_routing_adapter import OsrmRoadRoutingAdapter
from src.adapters.persistence import (
    DynamoDbCacheService,
    InMemoryCacheService,
    InMemoryGraphRepository,
    LocalReferenceRepository,
    S3GraphRepository,
)
from src.app.ports.output import ICacheService, IGraphRepository, IRoadRoutingProvider
from src.app.services.build_route_service import BuildRouteService
from src.app.services.city_directory_service import CityDirectoryService
from src.app.services.connectivity_service import ConnectivityService
from src.app.services.graph_builder_service import GraphBuilderService
from src.app.services.hub_selector import HubSelector
from src.app.services.path_geometry_service import PathGeometryService
from src.app.services.pathfinding_engine import PathfindingEngine
from src.app.services.price_calculator import PriceCalculator
from src.app.services.reality_checker import RealityChecker
from src.app.services.route_cache import RouteCache
from src.app.services.route_validator import RouteValidator
from src.app.services.segment_assembler import SegmentAssembler

logger = logging.getLogger(__name__)

# Process-wide singletons: the graph store and caches hold state that must be
# shared across requests.


@lru_cache(maxsize=1)
def get_reference_repository() -> LocalReferenceRepository:
    return LocalReferenceRepository()


@lru_cache(maxsize=1)
def get_graph_repository() -> IGraphRepository:
    if os.getenv("GRAPH_BUCKET"):
        return S3GraphRepository()
    return InMemoryGraphRepository()


@lru_cache(maxsize=1)
def get_cache_service() -> ICacheService:
    if os.getenv("ROUTE_CACHE_TABLE"):
        return DynamoDbCacheService()
    return InMemoryCacheService()


@lru_cache(maxsize=1)
def get_road_provider() -> IRoadRoutingProvider | None:
    """OSRM behind the geometry cache, only when OSRM_BASE_URL is configured."""

    if not os.getenv("OSRM_BASE_URL"):
        return None
    return CachedRoadRoutingAdapter(
        upstream=OsrmRoadRoutingAdapter(), cache=get_cache_service()
    )


@lru_cache(maxsize=1)
def get_price_calculator() -> PriceCalculator:
    return PriceCalculator()


@lru_cache(maxsize=1)
def get_build_route_service() -> BuildRouteService:
    reference = get_reference_repository()
    graph_repository = get_graph_repository()
    price_calculator = get_price_calculator()

    stops = (*reference.get_all_real_stops(), *reference.get_all_virtual_stops())
    return BuildRouteService(
        engine=PathfindingEngine(graph_repository=graph_repository),
        hub_selector=HubSelector(
            hubs=reference.list_hubs(), stops_by_id={s.id: s for s in stops}
        ),
        assembler=SegmentAssembler(
            stop_repository=reference, flight_repository=reference
        ),
        price_calculator=price_calculator,
        geometry_service=PathGeometryService(
            road_provider=get_road_provider(),
            road_profile=os.getenv("OSRM_PROFILE", "driving"),
        ),
        validator=RouteValidator(
            reality_checker=RealityChecker(
                price_calculator=price_calculator,
                city_regions={c.id: c.region for c in reference.list_cities()},
            )
        ),
        route_cache=RouteCache(
            cache=get_cache_service(),
            ttl_s=int(os.getenv("ROUTE_CACHE_TTL_S", "3600")),
        ),
        city_repository=reference,
        stop_repository=reference,
    )


def get_city_directory_service() -> CityDirectoryService:
    return CityDirectoryService(city_repository=get_reference_repository())


def get_connectivity_service() -> ConnectivityService:
    reference = get_reference_repository()
    return ConnectivityService(
        graph_repository=get_graph_repository(),
        city_repository=reference,
        stop_repository=reference,
        price_calculator=get_price_calculator(),
    )


def seed_local_graph() -> None:
    """Build and publish a graph from local reference data.

    Only for the in-memory store; with GRAPH_BUCKET set the worker owns
    publication.
    """

    if os.getenv("GRAPH_BUCKET"):
        return
    repository = get_graph_repository()
    if repository.snapshot() is not None:
        return
    reference = get_reference_repository()
    builder = GraphBuilderService(stop_repository=reference, flight_repository=reference)
    builder.build_and_publish(repository)
