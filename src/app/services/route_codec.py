"""JSON-compatible encoding of built routes for cache backends."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Mapping

from src.domain.models import (
    BuiltRoute,
    Correction,
    GeoPoint,
    IssueType,
    PriceBreakdown,
    RealityIssue,
    RouteSegment,
    ScheduledLeg,
    Season,
    SegmentValidation,
    ServiceClass,
    Stop,
    StopKind,
    TransportType,
    ValidationResult,
)


def _point(p: GeoPoint) -> list[float]:
    return [p.lat, p.lon]


def _iso(value: datetime | date | time | None) -> str | None:
    return value.isoformat() if value is not None else None


def _stop_to_dict(stop: Stop) -> dict[str, Any]:
    return {
        "id": stop.id,
        "name": stop.name,
        "location": _point(stop.location),
        "city_id": stop.city_id,
        "kind": stop.kind.value,
        "is_airport": stop.is_airport,
        "is_railway_station": stop.is_railway_station,
        "is_hub": stop.is_hub,
    }


def _stop_from_dict(data: Mapping[str, Any]) -> Stop:
    lat, lon = data["location"]
    return Stop(
        id=data["id"],
        name=data["name"],
        location=GeoPoint(lat=lat, lon=lon),
        city_id=data.get("city_id"),
        kind=StopKind(data.get("kind", StopKind.REAL.value)),
        is_airport=bool(data.get("is_airport")),
        is_railway_station=bool(data.get("is_railway_station")),
        is_hub=bool(data.get("is_hub")),
    )


def _leg_to_dict(leg: ScheduledLeg | None) -> dict[str, Any] | None:
    if leg is None:
        return None
    return {
        "leg_id": leg.leg_id,
        "from_stop_id": leg.from_stop_id,
        "to_stop_id": leg.to_stop_id,
        "transport_type": leg.transport_type.value,
        "departure_time": leg.departure_time.isoformat(),
        "arrival_time": leg.arrival_time.isoformat(),
        "days_of_week": leg.days_of_week,
        "route_id": leg.route_id,
        "price": leg.price,
        "capacity": leg.capacity,
        "season": leg.season.value,
    }


def _leg_from_dict(data: Mapping[str, Any] | None) -> ScheduledLeg | None:
    if not data:
        return None
    return ScheduledLeg(
        leg_id=data["leg_id"],
        from_stop_id=data["from_stop_id"],
        to_stop_id=data["to_stop_id"],
        transport_type=TransportType.parse(data.get("transport_type")),
        departure_time=time.fromisoformat(data["departure_time"]),
        arrival_time=time.fromisoformat(data["arrival_time"]),
        days_of_week=int(data.get("days_of_week", 0b1111111)),
        route_id=data.get("route_id"),
        price=data.get("price"),
        capacity=data.get("capacity"),
        season=Season(data.get("season", Season.ALL.value)),
    )


def price_to_dict(price: PriceBreakdown) -> dict[str, int]:
    return {
        "base": price.base,
        "taxi": price.taxi,
        "baggage": price.baggage,
        "fees": price.fees,
        "transfer": price.transfer,
        "total": price.total,
    }


def _segment_to_dict(segment: RouteSegment) -> dict[str, Any]:
    return {
        "segment_id": segment.segment_id,
        "from_stop": _stop_to_dict(segment.from_stop),
        "to_stop": _stop_to_dict(segment.to_stop),
        "transport_type": segment.transport_type.value,
        "distance_km": segment.distance_km,
        "duration_min": segment.duration_min,
        "departure": _iso(segment.departure),
        "arrival": _iso(segment.arrival),
        "route_id": segment.route_id,
        "leg": _leg_to_dict(segment.leg),
        "price": price_to_dict(segment.price),
        "geometry": [_point(p) for p in segment.geometry],
        "geometry_source": segment.geometry_source,
        "geometry_degraded": segment.geometry_degraded,
    }


def _segment_from_dict(data: Mapping[str, Any]) -> RouteSegment:
    price = data.get("price") or {}
    return RouteSegment(
        segment_id=data["segment_id"],
        from_stop=_stop_from_dict(data["from_stop"]),
        to_stop=_stop_from_dict(data["to_stop"]),
        transport_type=TransportType.parse(data.get("transport_type")),
        distance_km=float(data["distance_km"]),
        duration_min=int(data["duration_min"]),
        departure=datetime.fromisoformat(data["departure"]) if data.get("departure") else None,
        arrival=datetime.fromisoformat(data["arrival"]) if data.get("arrival") else None,
        route_id=data.get("route_id"),
        leg=_leg_from_dict(data.get("leg")),
        price=PriceBreakdown(
            base=int(price.get("base", 0)),
            taxi=int(price.get("taxi", 0)),
            baggage=int(price.get("baggage", 0)),
            fees=int(price.get("fees", 0)),
            transfer=int(price.get("transfer", 0)),
        ),
        geometry=tuple(GeoPoint(lat=lat, lon=lon) for lat, lon in data.get("geometry", [])),
        geometry_source=data.get("geometry_source"),
        geometry_degraded=bool(data.get("geometry_degraded")),
    )


def _issue_to_dict(issue: RealityIssue) -> dict[str, Any]:
    correction = issue.correction
    return {
        "type": issue.type.value,
        "message": issue.message,
        "segment_id": issue.segment_id,
        "expected": issue.expected,
        "actual": issue.actual,
        "correction": (
            {
                "type": correction.type,
                "suggested_value": correction.suggested_value,
                "confidence": correction.confidence,
            }
            if correction is not None
            else None
        ),
    }


def issue_from_dict(data: Mapping[str, Any]) -> RealityIssue:
    raw = data.get("correction")
    return RealityIssue(
        type=IssueType(data["type"]),
        message=data["message"],
        segment_id=data.get("segment_id"),
        expected=data.get("expected"),
        actual=data.get("actual"),
        correction=(
            Correction(
                type=raw["type"],
                suggested_value=raw.get("suggested_value"),
                confidence=float(raw.get("confidence", 0.0)),
            )
            if raw
            else None
        ),
    )


def validation_to_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "is_valid": result.is_valid,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
        "segment_validations": [
            {
                "segment_id": sv.segment_id,
                "is_valid": sv.is_valid,
                "errors": list(sv.errors),
                "warnings": list(sv.warnings),
            }
            for sv in result.segment_validations
        ],
        "recommendations": list(result.recommendations),
        "corrections": [_issue_to_dict(i) for i in result.corrections],
    }


def validation_from_dict(data: Mapping[str, Any]) -> ValidationResult:
    return ValidationResult(
        errors=tuple(data.get("errors", ())),
        warnings=tuple(data.get("warnings", ())),
        segment_validations=tuple(
            SegmentValidation(
                segment_id=sv["segment_id"],
                errors=tuple(sv.get("errors", ())),
                warnings=tuple(sv.get("warnings", ())),
            )
            for sv in data.get("segment_validations", ())
        ),
        recommendations=tuple(data.get("recommendations", ())),
        corrections=tuple(issue_from_dict(i) for i in data.get("corrections", ())),
    )


def route_to_dict(route: BuiltRoute) -> dict[str, Any]:
    return {
        "route_id": route.route_id,
        "from_city": route.from_city,
        "to_city": route.to_city,
        "travel_date": route.travel_date.isoformat(),
        "passengers": route.passengers,
        "graph_version": route.graph_version,
        "fingerprint": route.fingerprint,
        "hub_count": route.hub_count,
        "service_class": route.service_class.value,
        "booking_date": route.booking_date.isoformat() if route.booking_date else None,
        "created_at": _iso(route.created_at),
        "segments": [_segment_to_dict(s) for s in route.segments],
        "validation": (
            validation_to_dict(route.validation) if route.validation is not None else None
        ),
    }


def route_from_dict(data: Mapping[str, Any]) -> BuiltRoute:
    validation = data.get("validation")
    return BuiltRoute(
        route_id=data["route_id"],
        from_city=data["from_city"],
        to_city=data["to_city"],
        travel_date=date.fromisoformat(data["travel_date"]),
        segments=tuple(_segment_from_dict(s) for s in data.get("segments", ())),
        passengers=int(data.get("passengers", 1)),
        graph_version=data.get("graph_version"),
        fingerprint=data.get("fingerprint"),
        hub_count=int(data.get("hub_count", 0)),
        service_class=ServiceClass(data.get("service_class") or ServiceClass.ECONOMY.value),
        booking_date=(
            date.fromisoformat(data["booking_date"]) if data.get("booking_date") else None
        ),
        validation=validation_from_dict(validation) if validation else None,
        created_at=(
            datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None
        ),
    )
