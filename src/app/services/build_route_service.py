from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Sequence

from src.app.ports.output import ICityRepository, IStopRepository
from src.domain.algorithms.dijkstra import path_cost
from src.domain.exceptions import (
    GraphUnavailable,
    NoPathFound,
    NoStopsForCity,
    RouteNotFound,
    RoutingError,
)
from src.domain.models import (
    BuiltRoute,
    City,
    GraphEdge,
    GraphSnapshot,
    PriceContext,
    RealityCheckResult,
    RouteSegment,
    Season,
    ServiceClass,
    TransportType,
    ValidationResult,
    normalize_city_name,
)

from .hub_selector import HubSelector
from .path_geometry_service import PathGeometryService
from .pathfinding_engine import PathfindingEngine
from .price_calculator import PriceCalculator
from .route_cache import RouteCache, route_fingerprint, route_id_for
from .route_validator import RouteValidator
from .segment_assembler import SegmentAssembler
from .train_subgraph_resolver import TrainSubgraphResolver

logger = logging.getLogger(__name__)

DEFAULT_TRAIN_MAX_TRANSFERS = 5

ERROR_CODES: dict[type[RoutingError], str] = {
    GraphUnavailable: "GRAPH_UNAVAILABLE",
    NoStopsForCity: "NO_STOPS_FOR_CITY",
    NoPathFound: "NO_PATH_FOUND",
}


@dataclass(frozen=True, slots=True)
class BuildRouteRequest:
    from_city: str
    to_city: str
    travel_date: date
    passengers: int = 1
    max_transfers: int | None = None
    preferred_transport: TransportType | None = None
    service_class: ServiceClass = ServiceClass.ECONOMY
    baggage_weight_kg: float = 0.0
    insurance: bool = False
    meal: bool = False
    include_geometry: bool = True
    booking_date: date | None = None

    def price_options(self) -> dict[str, Any]:
        return {
            "service_class": self.service_class.value,
            "baggage_weight_kg": self.baggage_weight_kg,
            "insurance": self.insurance,
            "meal": self.meal,
            "include_geometry": self.include_geometry,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
        }

    def fingerprint(self, graph_version: str | None) -> str:
        return route_fingerprint(
            from_city=self.from_city,
            to_city=self.to_city,
            travel_date=self.travel_date,
            passengers=self.passengers,
            max_transfers=self.max_transfers,
            preferred_transport=(
                self.preferred_transport.value if self.preferred_transport else None
            ),
            options=self.price_options(),
            graph_version=graph_version,
        )


@dataclass(frozen=True, slots=True)
class BuildRouteResponse:
    success: bool
    route: BuiltRoute | None = None
    validation: ValidationResult | None = None
    execution_time_ms: float = 0.0
    graph_available: bool = True
    graph_version: str | None = None
    error: str | None = None
    error_code: str | None = None
    from_cache: bool = False


@dataclass(slots=True)
class BuildRouteService:
    """End-to-end route construction over one pinned graph version.

    Domain failures (no graph, unknown city, no path) come back as an
    unsuccessful response with an error code. Infrastructure errors raised by
    adapters propagate unchanged.
    """

    engine: PathfindingEngine
    hub_selector: HubSelector
    assembler: SegmentAssembler
    price_calculator: PriceCalculator
    geometry_service: PathGeometryService
    validator: RouteValidator
    route_cache: RouteCache
    city_repository: ICityRepository
    stop_repository: IStopRepository
    _train_resolvers: dict[str, TrainSubgraphResolver] = field(default_factory=dict)

    async def build(self, request: BuildRouteRequest) -> BuildRouteResponse:
        started = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000.0, 2)

        try:
            snapshot = self.engine.pin()
        except GraphUnavailable as exc:
            return BuildRouteResponse(
                success=False,
                execution_time_ms=elapsed_ms(),
                graph_available=False,
                error=str(exc),
                error_code=ERROR_CODES[GraphUnavailable],
            )

        fingerprint = request.fingerprint(snapshot.version)
        route_id = route_id_for(fingerprint)
        cached = self.route_cache.get(route_id)
        if cached is not None:
            logger.debug("Route cache hit %s", route_id)
            return BuildRouteResponse(
                success=True,
                route=cached,
                validation=cached.validation,
                execution_time_ms=elapsed_ms(),
                graph_version=snapshot.version,
                from_cache=True,
            )

        try:
            route = await self._build(request, snapshot, fingerprint, route_id)
        except (NoStopsForCity, NoPathFound) as exc:
            logger.info(
                "Route %s -> %s failed: %s", request.from_city, request.to_city, exc
            )
            return BuildRouteResponse(
                success=False,
                execution_time_ms=elapsed_ms(),
                graph_version=snapshot.version,
                error=str(exc),
                error_code=ERROR_CODES[type(exc)],
            )

        self.route_cache.put(route)
        return BuildRouteResponse(
            success=True,
            route=route,
            validation=route.validation,
            execution_time_ms=elapsed_ms(),
            graph_version=snapshot.version,
        )

    def get_route(self, route_id: str) -> BuiltRoute:
        route = self.route_cache.get(route_id)
        if route is None:
            raise RouteNotFound(f"Route {route_id} not found or expired")
        return route

    def reality_check(self, route: BuiltRoute | str) -> RealityCheckResult:
        if isinstance(route, str):
            route = self.get_route(route)
        return self.validator.reality_checker.check(route)

    def resolve_city_stops(self, snapshot: GraphSnapshot, city: str) -> tuple[str, ...]:
        """Graph stops of a city: real stops first, virtual ones as fallback."""

        matched = self._match_cities(city)
        if not matched:
            raise NoStopsForCity(city, f"Unknown city: {city}")
        city_ids = {c.id for c in matched}

        for stops in (
            self.stop_repository.get_all_real_stops(),
            self.stop_repository.get_all_virtual_stops(),
        ):
            found = tuple(
                s.id for s in stops if s.city_id in city_ids and snapshot.has_node(s.id)
            )
            if found:
                return found
        raise NoStopsForCity(city)

    def _match_cities(self, city: str) -> list[City]:
        key = normalize_city_name(city)
        if not key:
            return []
        return [
            c
            for c in self.city_repository.list_cities()
            if normalize_city_name(c.id) == key or c.normalized_name == key
        ]

    async def _build(
        self,
        request: BuildRouteRequest,
        snapshot: GraphSnapshot,
        fingerprint: str,
        route_id: str,
    ) -> BuiltRoute:
        origins = self.resolve_city_stops(snapshot, request.from_city)
        destinations = self.resolve_city_stops(snapshot, request.to_city)
        edges = self._find_path(snapshot, request, origins, destinations)

        segments = self.assembler.assemble(edges, request.travel_date)
        hub_count = self.hub_selector.hub_count(edges)
        created_at = datetime.now(timezone.utc).replace(tzinfo=None)
        segments = self._price(request, segments, hub_count, created_at.date())

        route = BuiltRoute(
            route_id=route_id,
            from_city=request.from_city,
            to_city=request.to_city,
            travel_date=request.travel_date,
            segments=segments,
            passengers=request.passengers,
            graph_version=snapshot.version,
            fingerprint=fingerprint,
            hub_count=hub_count,
            service_class=request.service_class,
            booking_date=request.booking_date or created_at.date(),
            created_at=created_at,
        )
        if request.include_geometry:
            route = await self.geometry_service.render_route(route)
        return replace(route, validation=self.validator.validate(route))

    def _find_path(
        self,
        snapshot: GraphSnapshot,
        request: BuildRouteRequest,
        origins: Sequence[str],
        destinations: Sequence[str],
    ) -> tuple[GraphEdge, ...]:
        if request.preferred_transport is TransportType.TRAIN:
            limit = request.max_transfers
            if limit is None:
                limit = DEFAULT_TRAIN_MAX_TRANSFERS
            resolver = self._train_resolver(snapshot)
            return resolver.find_best_between(origins, destinations, limit).connections

        hub_bound = [
            o for o in origins if self._requires_hubs(snapshot, o, destinations)
        ]
        if hub_bound:
            logger.info("Small airport origin %s, routing via hubs", ",".join(hub_bound))
            try:
                via_hubs = self._via_hubs(snapshot, request, hub_bound, destinations)
            except NoPathFound:
                logger.warning(
                    "No hub route from %s, searching all paths", ",".join(hub_bound)
                )
            else:
                free = [o for o in origins if o not in hub_bound]
                if not free:
                    return via_hubs
                try:
                    direct = self._search(snapshot, request, free, destinations)
                except NoPathFound:
                    return via_hubs
                return min(via_hubs, direct, key=path_cost)

        return self._search(snapshot, request, origins, destinations)

    def _search(
        self,
        snapshot: GraphSnapshot,
        request: BuildRouteRequest,
        origins: Sequence[str],
        destinations: Sequence[str],
    ) -> tuple[GraphEdge, ...]:
        return self.engine.search_many(
            origins,
            destinations,
            request.travel_date,
            request.max_transfers,
            snapshot=snapshot,
        ).edges

    def _requires_hubs(
        self, snapshot: GraphSnapshot, origin: str, destinations: Sequence[str]
    ) -> bool:
        """True when no destination may be reached directly from a small airport."""

        if not self.hub_selector.is_small_airport(snapshot, origin):
            return False
        for destination in destinations:
            selection = self.hub_selector.select_hubs(snapshot, origin, destination)
            if selection.can_be_direct or not selection.requires_hubs:
                return False
        return True

    def _via_hubs(
        self,
        snapshot: GraphSnapshot,
        request: BuildRouteRequest,
        origins: Sequence[str],
        destinations: Sequence[str],
    ) -> tuple[GraphEdge, ...]:
        best: tuple[GraphEdge, ...] | None = None
        for origin in origins:
            for destination in destinations:
                try:
                    edges = self.hub_selector.find_path_via_hubs(
                        snapshot,
                        origin,
                        destination,
                        request.travel_date,
                        request.max_transfers,
                    )
                except NoPathFound:
                    continue
                if best is None or path_cost(edges) < path_cost(best):
                    best = edges
        if best is None:
            raise NoPathFound(
                f"No route from {request.from_city} to {request.to_city}, even via hubs"
            )
        return best

    def _train_resolver(self, snapshot: GraphSnapshot) -> TrainSubgraphResolver:
        resolver = self._train_resolvers.get(snapshot.version)
        if resolver is None:
            # Only the current version is worth keeping.
            self._train_resolvers.clear()
            resolver = TrainSubgraphResolver.from_snapshot(snapshot)
            self._train_resolvers[snapshot.version] = resolver
        return resolver

    def _price(
        self,
        request: BuildRouteRequest,
        segments: Sequence[RouteSegment],
        hub_count: int,
        today: date,
    ) -> tuple[RouteSegment, ...]:
        regions = {c.id: c.region for c in self.city_repository.list_cities()}
        booking_date = request.booking_date or today

        priced = []
        for index, segment in enumerate(segments):
            departure = segment.departure
            day = departure.date() if departure is not None else request.travel_date
            context = PriceContext(
                distance_km=segment.distance_km,
                season=Season.for_date(day),
                travel_date=day,
                booking_date=booking_date,
                departure_time=departure.time() if departure is not None else None,
                service_class=request.service_class,
                region=regions.get(segment.from_stop.city_id or ""),
                baggage_weight_kg=request.baggage_weight_kg,
                insurance=request.insurance,
                meal=request.meal,
                transfers_count=1 if index else 0,
            )
            price = self.price_calculator.calculate_segment_price(
                segment.transport_type,
                context,
                hub_count=hub_count,
                declared_price=segment.leg.price if segment.leg is not None else None,
                origin_city_id=segment.from_stop.city_id,
                passengers=request.passengers,
            )
            priced.append(replace(segment, price=price))
        return tuple(priced)
