from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from src.domain.algorithms.geo_utils import haversine_distance_km, max_gap_km
from src.domain.models import (
    BuiltRoute,
    IssueType,
    RealityCheckResult,
    RouteIssue,
    RouteSegment,
    Season,
    SegmentValidation,
    TransportType,
    ValidationResult,
)
from src.domain.models.city import is_valid_city_id

from .reality_checker import RealityChecker

T = TransportType

MAX_SPEED_KMH: Mapping[TransportType, float] = {
    T.AIRPLANE: 1000.0,
    T.TRAIN: 200.0,
    T.BUS: 120.0,
    T.TAXI: 150.0,
    T.FERRY: 60.0,
    T.WINTER_ROAD: 90.0,
}
MAX_BUS_DISTANCE_KM = 1500.0
MAX_BUS_DURATION_MIN = 24 * 60
MAX_FERRY_DISTANCE_KM = 1000.0
MAX_TAXI_DISTANCE_KM = 200.0
MAX_TRANSFER_WALK_KM = 10.0
MAX_SMALL_AIRPORT_DIRECT_KM = 500.0
MAX_PATH_GAP_KM = 50.0
GAP_CHECK_MODES = frozenset({T.BUS, T.TAXI, T.FERRY, T.WINTER_ROAD})


@dataclass(frozen=True, slots=True)
class DetectionResult:
    errors: tuple[RouteIssue, ...] = ()
    warnings: tuple[RouteIssue, ...] = ()


@dataclass(slots=True)
class StructuralDetector:
    """Flags routes that cannot physically exist as described."""

    def detect(self, route: BuiltRoute) -> DetectionResult:
        errors: list[RouteIssue] = []
        warnings: list[RouteIssue] = []

        if not route.segments:
            errors.append(
                RouteIssue(IssueType.UNREALISTIC_ROUTE, "Route has no segments")
            )
            return DetectionResult(errors=tuple(errors))

        for segment in route.segments:
            self._check_segment(segment, errors, warnings)

        for prev, nxt in zip(route.segments, route.segments[1:]):
            self._check_adjacency(prev, nxt, errors, warnings)

        return DetectionResult(errors=tuple(errors), warnings=tuple(warnings))

    def _check_segment(
        self,
        segment: RouteSegment,
        errors: list[RouteIssue],
        warnings: list[RouteIssue],
    ) -> None:
        sid = segment.segment_id
        mode = segment.transport_type

        def error(kind: IssueType, message: str) -> None:
            errors.append(RouteIssue(kind, message, sid))

        def warn(kind: IssueType, message: str) -> None:
            warnings.append(RouteIssue(kind, message, sid))

        for stop in (segment.from_stop, segment.to_stop):
            if not is_valid_city_id(stop.city_id):
                error(
                    IssueType.INVALID_CITY_FORMAT,
                    f"Stop {stop.id} has invalid city id {stop.city_id!r}",
                )

        if segment.from_stop.id == segment.to_stop.id:
            error(IssueType.UNREALISTIC_ROUTE, "Segment starts and ends at the same stop")
        if segment.distance_km <= 0:
            error(IssueType.UNREALISTIC_ROUTE, "Segment distance must be positive")
        if segment.duration_min <= 0:
            error(IssueType.UNREALISTIC_ROUTE, "Segment duration must be positive")
        if segment.departure and segment.arrival and segment.arrival < segment.departure:
            error(IssueType.UNREALISTIC_ROUTE, "Segment arrives before it departs")

        max_speed = MAX_SPEED_KMH.get(mode)
        if max_speed and segment.distance_km > 0 and segment.duration_min > 0:
            speed = segment.distance_km / (segment.duration_min / 60.0)
            if speed > max_speed:
                error(
                    IssueType.UNREALISTIC_ROUTE,
                    f"Average speed {speed:.0f} km/h exceeds {max_speed:.0f} km/h for {mode.value}",
                )

        if mode is T.BUS and (
            segment.distance_km > MAX_BUS_DISTANCE_KM
            or segment.duration_min > MAX_BUS_DURATION_MIN
        ):
            error(IssueType.UNREALISTIC_ROUTE, "Bus segment is too long")

        if segment.departure is not None:
            season = Season.for_date(segment.departure.date())
            if mode is T.FERRY and season is Season.WINTER:
                error(IssueType.UNREALISTIC_ROUTE, "Ferries do not operate in winter")
            if mode is T.WINTER_ROAD and season is Season.SUMMER:
                error(IssueType.UNREALISTIC_ROUTE, "Winter roads are closed in summer")

        if mode is T.AIRPLANE:
            for stop in (segment.from_stop, segment.to_stop):
                if not stop.is_airport:
                    error(
                        IssueType.INCORRECT_CONNECTION,
                        f"Flight uses {stop.id}, which is not an airport",
                    )
            if (
                segment.distance_km > MAX_SMALL_AIRPORT_DIRECT_KM
                and not segment.from_stop.is_hub
                and not segment.to_stop.is_hub
            ):
                warn(
                    IssueType.UNUSUAL_ROUTE,
                    f"Direct {segment.distance_km:.0f} km flight between non-hub airports",
                )
        if mode is T.TRAIN:
            for stop in (segment.from_stop, segment.to_stop):
                if not stop.is_railway_station:
                    error(
                        IssueType.INCORRECT_CONNECTION,
                        f"Train uses {stop.id}, which is not a railway station",
                    )

        if mode is T.FERRY and segment.distance_km > MAX_FERRY_DISTANCE_KM:
            warn(IssueType.LONG_DISTANCE, f"Ferry segment of {segment.distance_km:.0f} km")
        if mode is T.TAXI and segment.distance_km > MAX_TAXI_DISTANCE_KM:
            warn(IssueType.LONG_DISTANCE, f"Taxi segment of {segment.distance_km:.0f} km")

        if mode in GAP_CHECK_MODES and len(segment.geometry) >= 2:
            gap = max_gap_km(segment.geometry)
            if gap > MAX_PATH_GAP_KM:
                warn(
                    IssueType.SIMPLIFIED_PATH,
                    f"Path has a {gap:.0f} km gap between points",
                )

    def _check_adjacency(
        self,
        prev: RouteSegment,
        nxt: RouteSegment,
        errors: list[RouteIssue],
        warnings: list[RouteIssue],
    ) -> None:
        if prev.to_stop.id == nxt.from_stop.id:
            return

        gap_km = haversine_distance_km(prev.to_stop.location, nxt.from_stop.location)
        same_city = (
            prev.to_stop.city_id is not None
            and prev.to_stop.city_id == nxt.from_stop.city_id
        )
        if not same_city:
            errors.append(
                RouteIssue(
                    IssueType.EMPTY_SPACE,
                    f"Gap between {prev.to_stop.id} and {nxt.from_stop.id} ({gap_km:.0f} km)",
                    nxt.segment_id,
                )
            )
        elif gap_km > MAX_TRANSFER_WALK_KM:
            errors.append(
                RouteIssue(
                    IssueType.INCORRECT_CONNECTION,
                    f"Transfer of {gap_km:.0f} km inside {prev.to_stop.city_id}",
                    nxt.segment_id,
                )
            )
        else:
            warnings.append(
                RouteIssue(
                    IssueType.UNUSUAL_ROUTE,
                    f"Change of stop {prev.to_stop.id} -> {nxt.from_stop.id}",
                    nxt.segment_id,
                )
            )


@dataclass(slots=True)
class RouteValidator:
    """Structural errors plus plausibility warnings for a built route.

    Never raises for an invalid route; callers decide what to do with
    `is_valid=False`.
    """

    detector: StructuralDetector = field(default_factory=StructuralDetector)
    reality_checker: RealityChecker = field(default_factory=RealityChecker)

    def validate(self, route: BuiltRoute) -> ValidationResult:
        detected = self.detector.detect(route)
        reality = self.reality_checker.check(route)
        return self._merge(route, detected, reality)

    def _merge(
        self, route: BuiltRoute, detected: DetectionResult, reality: RealityCheckResult
    ) -> ValidationResult:
        errors = [e.format() for e in detected.errors]
        warnings = [w.format() for w in detected.warnings]

        reality_lines: dict[str | None, list[str]] = {}
        for issue in reality.issues:
            line = f"[{issue.type.value}] {issue.message}"
            if issue.correction is not None:
                line += (
                    f" (suggested {issue.correction.type}"
                    f", confidence {issue.correction.confidence:.2f})"
                )
            warnings.append(line)
            reality_lines.setdefault(issue.segment_id, []).append(line)

        per_segment = []
        for segment in route.segments:
            sid = segment.segment_id
            per_segment.append(
                SegmentValidation(
                    segment_id=sid,
                    errors=tuple(e.format() for e in detected.errors if e.segment_id == sid),
                    warnings=tuple(
                        [w.format() for w in detected.warnings if w.segment_id == sid]
                        + reality_lines.get(sid, [])
                    ),
                )
            )

        return ValidationResult(
            errors=tuple(errors),
            warnings=tuple(warnings),
            segment_validations=tuple(per_segment),
            recommendations=reality.recommendations,
            corrections=reality.issues,
        )
