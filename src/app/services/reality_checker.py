from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from src.domain.algorithms.geo_utils import haversine_distance_km, polyline_distance_km
from src.domain.models import (
    BuiltRoute,
    Correction,
    IssueType,
    PriceContext,
    RealityCheckResult,
    RealityIssue,
    RouteSegment,
    Season,
    TransportType,
)

from .price_calculator import PriceCalculator

T = TransportType

DISTANCE_TOLERANCE = 0.10
PRICE_TOLERANCE = 0.30
STRAIGHTNESS_THRESHOLD = 0.05
MIN_STRAIGHT_CHECK_KM = 1.0
LONG_ROUTE_KM = 2000.0
HUB_DETOUR_RATIO = 1.5

# Ground distance over straight-line distance, per mode.
DETOUR_FACTORS: Mapping[TransportType, float] = {
    T.AIRPLANE: 1.0,
    T.TRAIN: 1.15,
    T.BUS: 1.25,
    T.TAXI: 1.25,
    T.FERRY: 1.2,
    T.WINTER_ROAD: 1.2,
    T.UNKNOWN: 1.0,
}

TERRAIN_MODES = frozenset({T.BUS, T.TAXI, T.FERRY, T.WINTER_ROAD})

MIN_TRANSFER_MINUTES: Mapping[tuple[TransportType, TransportType], int] = {
    (T.AIRPLANE, T.AIRPLANE): 60,
    (T.TRAIN, T.TRAIN): 15,
    (T.BUS, T.BUS): 10,
}
MIXED_TRANSFER_MINUTES = 45

RECOMMENDATIONS: Mapping[IssueType, str] = {
    IssueType.DISTANCE_MISMATCH: "Recalculate segment distances from stop coordinates.",
    IssueType.PRICE_MISMATCH: "Review fares against the rate table.",
    IssueType.PATH_MISMATCH: "Rebuild the path geometry from road or waterway data.",
    IssueType.HUB_MISMATCH: "Reconsider the hubs used by this route.",
    IssueType.TRANSFER_MISMATCH: "Allow more time between connecting segments.",
}


@dataclass(slots=True)
class RealityChecker:
    """Compares what a route claims with what geometry and the rate table expect."""

    price_calculator: PriceCalculator = field(default_factory=PriceCalculator)
    # city id -> pricing region, same lookup the route was priced with
    city_regions: Mapping[str, str | None] = field(default_factory=dict)
    distance_tolerance: float = DISTANCE_TOLERANCE
    price_tolerance: float = PRICE_TOLERANCE

    def check(self, route: BuiltRoute) -> RealityCheckResult:
        issues: list[RealityIssue] = []
        for segment in route.segments:
            issues.extend(self._check_distance(segment))
            issues.extend(self._check_price(route, segment))
            issues.extend(self._check_path(segment))
        issues.extend(self._check_hubs(route))
        issues.extend(self._check_transfers(route))

        recommendations: list[str] = []
        for issue in issues:
            text = RECOMMENDATIONS.get(issue.type)
            if text and text not in recommendations:
                recommendations.append(text)

        return RealityCheckResult(
            issues=tuple(issues), recommendations=tuple(recommendations)
        )

    def reference_distance_km(self, segment: RouteSegment) -> float:
        straight = haversine_distance_km(
            segment.from_stop.location, segment.to_stop.location
        )
        if segment.transport_type is T.AIRPLANE:
            return straight
        if segment.geometry_source == "road" and len(segment.geometry) >= 3:
            return polyline_distance_km(segment.geometry)
        return straight * DETOUR_FACTORS.get(segment.transport_type, 1.0)

    def _confidence(self, segment: RouteSegment, issue_type: IssueType) -> float:
        value = 0.5
        if issue_type is IssueType.DISTANCE_MISMATCH and len(segment.geometry) >= 3:
            value += 0.2
        if issue_type is IssueType.PRICE_MISMATCH:
            value += 0.1
        if segment.transport_type in (T.FERRY, T.WINTER_ROAD):
            value -= 0.1
        return max(0.0, min(1.0, value))

    def _check_distance(self, segment: RouteSegment) -> list[RealityIssue]:
        expected = self.reference_distance_km(segment)
        actual = segment.distance_km
        if expected <= 0:
            return []
        deviation = abs(actual - expected) / expected
        if deviation <= self.distance_tolerance:
            return []
        return [
            RealityIssue(
                type=IssueType.DISTANCE_MISMATCH,
                message=(
                    f"Declared distance {actual:.0f} km differs from expected "
                    f"{expected:.0f} km by {deviation:.0%}"
                ),
                segment_id=segment.segment_id,
                expected=round(expected, 1),
                actual=actual,
                correction=Correction(
                    type="adjust_distance",
                    suggested_value=round(expected, 1),
                    confidence=self._confidence(segment, IssueType.DISTANCE_MISMATCH),
                ),
            )
        ]

    def _check_price(self, route: BuiltRoute, segment: RouteSegment) -> list[RealityIssue]:
        base = segment.price.base / max(1, route.passengers)
        if base <= 0 or segment.distance_km <= 0:
            return []

        departure = segment.departure
        region = self.city_regions.get(segment.from_stop.city_id or "")
        booking_date = route.booking_date or (
            route.created_at.date() if route.created_at is not None else None
        )
        if departure is not None and booking_date is not None:
            context = PriceContext(
                distance_km=segment.distance_km,
                season=Season.for_date(departure.date()),
                travel_date=departure.date(),
                booking_date=booking_date,
                departure_time=departure.time(),
                service_class=route.service_class,
                region=region,
            )
        else:
            # Without booking context the date and time coefficients are skipped.
            context = PriceContext(
                distance_km=segment.distance_km,
                service_class=route.service_class,
                region=region,
            )
        expected = self.price_calculator.calculate_base_price(
            segment.transport_type, context, route.hub_count
        )
        if expected <= 0:
            return []

        deviation = abs(base - expected) / expected
        if deviation <= self.price_tolerance:
            return []
        return [
            RealityIssue(
                type=IssueType.PRICE_MISMATCH,
                message=(
                    f"Base price {base:.0f} differs from expected {expected} by {deviation:.0%}"
                ),
                segment_id=segment.segment_id,
                expected=float(expected),
                actual=float(base),
                correction=Correction(
                    type="adjust_price",
                    suggested_value=float(expected),
                    confidence=self._confidence(segment, IssueType.PRICE_MISMATCH),
                ),
            )
        ]

    def _check_path(self, segment: RouteSegment) -> list[RealityIssue]:
        if segment.transport_type not in TERRAIN_MODES or not segment.geometry:
            return []
        straight = haversine_distance_km(
            segment.from_stop.location, segment.to_stop.location
        )
        if straight < MIN_STRAIGHT_CHECK_KM:
            return []

        if len(segment.geometry) <= 2:
            confidence = 0.9
            message = "Path is a straight line"
        else:
            length = polyline_distance_km(segment.geometry)
            if length / straight - 1.0 >= STRAIGHTNESS_THRESHOLD:
                return []
            confidence = 0.8
            message = "Path is almost straight"

        return [
            RealityIssue(
                type=IssueType.PATH_MISMATCH,
                message=f"{message} for a {segment.transport_type.value} segment",
                segment_id=segment.segment_id,
                expected=round(straight * DETOUR_FACTORS[segment.transport_type], 1),
                actual=round(polyline_distance_km(segment.geometry), 1),
                correction=Correction(
                    type="rebuild_path", suggested_value=None, confidence=confidence
                ),
            )
        ]

    def _check_hubs(self, route: BuiltRoute) -> list[RealityIssue]:
        if not route.segments:
            return []
        first, last = route.segments[0], route.segments[-1]
        direct = haversine_distance_km(first.from_stop.location, last.to_stop.location)

        if (
            len(route.segments) == 1
            and direct > LONG_ROUTE_KM
            and first.transport_type is not T.AIRPLANE
        ):
            return [
                RealityIssue(
                    type=IssueType.HUB_MISMATCH,
                    message=f"{direct:.0f} km without any hub",
                    segment_id=first.segment_id,
                    expected=LONG_ROUTE_KM,
                    actual=round(direct, 1),
                    correction=Correction(type="add_hub", suggested_value=None, confidence=0.6),
                )
            ]

        if route.hub_count > 0 and direct > 0:
            via = sum(
                haversine_distance_km(s.from_stop.location, s.to_stop.location)
                for s in route.segments
            )
            if via > direct * HUB_DETOUR_RATIO:
                return [
                    RealityIssue(
                        type=IssueType.HUB_MISMATCH,
                        message=f"Hub detour {via:.0f} km vs direct {direct:.0f} km",
                        expected=round(direct * HUB_DETOUR_RATIO, 1),
                        actual=round(via, 1),
                        correction=Correction(
                            type="remove_hub", suggested_value=None, confidence=0.6
                        ),
                    )
                ]
        return []

    def _check_transfers(self, route: BuiltRoute) -> list[RealityIssue]:
        issues: list[RealityIssue] = []
        for prev, nxt in zip(route.segments, route.segments[1:]):
            if prev.arrival is None or nxt.departure is None:
                continue
            if prev.to_stop.id != nxt.from_stop.id:
                continue
            required = MIN_TRANSFER_MINUTES.get(
                (prev.transport_type, nxt.transport_type), MIXED_TRANSFER_MINUTES
            )
            gap = (nxt.departure - prev.arrival).total_seconds() / 60.0
            if gap >= required:
                continue
            issues.append(
                RealityIssue(
                    type=IssueType.TRANSFER_MISMATCH,
                    message=f"Only {gap:.0f} min to connect, {required} min required",
                    segment_id=nxt.segment_id,
                    expected=float(required),
                    actual=gap,
                    correction=Correction(
                        type="adjust_transfer", suggested_value=float(required), confidence=0.7
                    ),
                )
            )
        return issues
