from __future__ import annotations

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_build_route_service
from src.adapters.api.schemas.routes import (
    BuildRouteRequestSchema,
    BuildRouteResponseSchema,
    CorrectionSchema,
    GeoPointSchema,
    PriceBreakdownSchema,
    RealityCheckResponseSchema,
    RealityIssueSchema,
    RouteSchema,
    RouteSegmentSchema,
    SegmentValidationSchema,
    StopSchema,
    ValidationSchema,
)
from src.app.services.build_route_service import BuildRouteRequest, BuildRouteService
from src.domain.algorithms.polyline import encode_polyline
from src.domain.models import (
    BuiltRoute,
    GeoPoint,
    PriceBreakdown,
    RealityCheckResult,
    RealityIssue,
    RouteSegment,
    ServiceClass,
    Stop,
    StopKind,
    TransportType,
    ValidationResult,
)

router = APIRouter(prefix="/routes", tags=["routes"])


def _point(p: GeoPoint) -> GeoPointSchema:
    return GeoPointSchema(lat=p.lat, lon=p.lon)


def _price(price: PriceBreakdown) -> PriceBreakdownSchema:
    return PriceBreakdownSchema(
        base=price.base,
        taxi=price.taxi,
        baggage=price.baggage,
        fees=price.fees,
        transfer=price.transfer,
        total=price.total,
    )


def _stop(stop: Stop) -> StopSchema:
    return StopSchema(
        id=stop.id,
        name=stop.name,
        location=_point(stop.location),
        city_id=stop.city_id,
        kind=stop.kind.value,
        is_airport=stop.is_airport,
        is_railway_station=stop.is_railway_station,
        is_hub=stop.is_hub,
    )


def _issue(issue: RealityIssue) -> RealityIssueSchema:
    correction = issue.correction
    return RealityIssueSchema(
        type=issue.type.value,
        message=issue.message,
        segment_id=issue.segment_id,
        expected=issue.expected,
        actual=issue.actual,
        correction=(
            CorrectionSchema(
                type=correction.type,
                suggested_value=correction.suggested_value,
                confidence=correction.confidence,
            )
            if correction is not None
            else None
        ),
    )


def _validation(result: ValidationResult | None) -> ValidationSchema | None:
    if result is None:
        return None
    return ValidationSchema(
        is_valid=result.is_valid,
        errors=list(result.errors),
        warnings=list(result.warnings),
        segment_validations=[
            SegmentValidationSchema(
                segment_id=sv.segment_id,
                is_valid=sv.is_valid,
                errors=list(sv.errors),
                warnings=list(sv.warnings),
            )
            for sv in result.segment_validations
        ],
        recommendations=list(result.recommendations),
        corrections=[_issue(i) for i in result.corrections],
    )


def _segment(segment: RouteSegment) -> RouteSegmentSchema:
    return RouteSegmentSchema(
        segment_id=segment.segment_id,
        from_stop=_stop(segment.from_stop),
        to_stop=_stop(segment.to_stop),
        transport_type=segment.transport_type.value,
        distance_km=segment.distance_km,
        duration_min=segment.duration_min,
        departure=segment.departure,
        arrival=segment.arrival,
        route_id=segment.route_id,
        price=_price(segment.price),
        geometry=[_point(p) for p in segment.geometry],
        polyline=encode_polyline(segment.geometry) if segment.geometry else None,
        geometry_source=segment.geometry_source,
        geometry_degraded=segment.geometry_degraded,
    )


def route_to_schema(route: BuiltRoute) -> RouteSchema:
    return RouteSchema(
        route_id=route.route_id,
        from_city=route.from_city,
        to_city=route.to_city,
        travel_date=route.travel_date,
        passengers=route.passengers,
        graph_version=route.graph_version,
        hub_count=route.hub_count,
        service_class=route.service_class.value,
        booking_date=route.booking_date,
        segments=[_segment(s) for s in route.segments],
        total_distance_km=round(route.total_distance_km, 1),
        total_duration_min=route.total_duration_min,
        total_price=_price(route.total_price),
        transfer_count=route.transfer_count,
        validation=_validation(route.validation),
        created_at=route.created_at,
    )


def _stop_from_schema(schema: StopSchema) -> Stop:
    return Stop(
        id=schema.id,
        name=schema.name,
        location=GeoPoint(lat=schema.location.lat, lon=schema.location.lon),
        city_id=schema.city_id,
        kind=StopKind(schema.kind),
        is_airport=schema.is_airport,
        is_railway_station=schema.is_railway_station,
        is_hub=schema.is_hub,
    )


def route_from_schema(schema: RouteSchema) -> BuiltRoute:
    """Client-supplied route for plausibility checks; totals are recomputed."""

    return BuiltRoute(
        route_id=schema.route_id,
        from_city=schema.from_city,
        to_city=schema.to_city,
        travel_date=schema.travel_date,
        passengers=schema.passengers,
        graph_version=schema.graph_version,
        hub_count=schema.hub_count,
        service_class=ServiceClass(schema.service_class),
        booking_date=schema.booking_date,
        created_at=schema.created_at,
        segments=tuple(
            RouteSegment(
                segment_id=s.segment_id,
                from_stop=_stop_from_schema(s.from_stop),
                to_stop=_stop_from_schema(s.to_stop),
                transport_type=TransportType(s.transport_type),
                distance_km=s.distance_km,
                duration_min=s.duration_min,
                departure=s.departure,
                arrival=s.arrival,
                route_id=s.route_id,
                price=PriceBreakdown(
                    base=s.price.base,
                    taxi=s.price.taxi,
                    baggage=s.price.baggage,
                    fees=s.price.fees,
                    transfer=s.price.transfer,
                ),
                geometry=tuple(GeoPoint(lat=p.lat, lon=p.lon) for p in s.geometry),
                geometry_source=s.geometry_source,
                geometry_degraded=s.geometry_degraded,
            )
            for s in schema.segments
        ),
    )


def _reality(route_id: str, result: RealityCheckResult) -> RealityCheckResponseSchema:
    return RealityCheckResponseSchema(
        route_id=route_id,
        has_issues=result.has_issues,
        issues=[_issue(i) for i in result.issues],
        recommendations=list(result.recommendations),
    )


@router.post("/build", response_model=BuildRouteResponseSchema)
async def build_route(
    req: BuildRouteRequestSchema,
    service: BuildRouteService = Depends(get_build_route_service),
) -> BuildRouteResponseSchema:
    response = await service.build(
        BuildRouteRequest(
            from_city=req.from_city,
            to_city=req.to_city,
            travel_date=req.travel_date,
            passengers=req.passengers,
            max_transfers=req.max_transfers,
            preferred_transport=(
                TransportType(req.preferred_transport) if req.preferred_transport else None
            ),
            service_class=ServiceClass(req.service_class),
            baggage_weight_kg=req.baggage_weight_kg,
            insurance=req.insurance,
            meal=req.meal,
            include_geometry=req.include_geometry,
            booking_date=req.booking_date,
        )
    )
    if req.strict and response.validation is not None:
        response.validation.ensure_valid()

    return BuildRouteResponseSchema(
        success=response.success,
        route=route_to_schema(response.route) if response.route is not None else None,
        validation=_validation(response.validation),
        execution_time_ms=response.execution_time_ms,
        graph_available=response.graph_available,
        graph_version=response.graph_version,
        error=response.error,
        error_code=response.error_code,
        from_cache=response.from_cache,
    )


@router.post("/reality-check", response_model=RealityCheckResponseSchema)
def reality_check_route(
    route: RouteSchema,
    service: BuildRouteService = Depends(get_build_route_service),
) -> RealityCheckResponseSchema:
    return _reality(route.route_id, service.reality_check(route_from_schema(route)))


@router.get("/{route_id}", response_model=RouteSchema)
def get_route(
    route_id: str,
    service: BuildRouteService = Depends(get_build_route_service),
) -> RouteSchema:
    return route_to_schema(service.get_route(route_id))


@router.get("/{route_id}/reality-check", response_model=RealityCheckResponseSchema)
def reality_check_cached(
    route_id: str,
    service: BuildRouteService = Depends(get_build_route_service),
) -> RealityCheckResponseSchema:
    return _reality(route_id, service.reality_check(route_id))
