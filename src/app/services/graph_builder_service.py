from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping

from src.app.ports.output import IFlightRepository, IGraphRepository, IStopRepository
from src.domain.algorithms.geo_utils import haversine_distance_km
from src.domain.models import (
    GraphEdge,
    GraphSnapshot,
    ScheduledLeg,
    Season,
    Stop,
    TransportType,
)

logger = logging.getLogger(__name__)

T = TransportType

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

SEASONAL_MODES = frozenset({T.FERRY, T.WINTER_ROAD})


@dataclass(frozen=True, slots=True)
class GraphBuildReport:
    snapshot: GraphSnapshot
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(slots=True)
class GraphBuilderService:
    """Builds graph snapshots from reference stops and scheduled legs.

    Legs sharing (from, to, route_id) collapse into one edge weighted by the
    fastest leg. Legs pointing at unknown stops or with a non-positive
    duration are left out and reported as errors.
    """

    stop_repository: IStopRepository
    flight_repository: IFlightRepository

    def build_snapshot(self, *, version: str | None = None) -> GraphBuildReport:
        started = time.perf_counter()
        stops = {
            s.id: s
            for s in (
                *self.stop_repository.get_all_real_stops(),
                *self.stop_repository.get_all_virtual_stops(),
            )
        }
        legs = self.flight_repository.get_all_legs()

        errors: list[str] = []
        warnings: list[str] = []
        grouped: dict[tuple[str, str, str | None], list[ScheduledLeg]] = {}
        for leg in legs:
            missing = [sid for sid in (leg.from_stop_id, leg.to_stop_id) if sid not in stops]
            if missing:
                errors.append(f"Leg {leg.leg_id} references unknown stop(s) {', '.join(missing)}")
                continue
            if leg.from_stop_id == leg.to_stop_id:
                errors.append(f"Leg {leg.leg_id} starts and ends at {leg.from_stop_id}")
                continue
            if leg.duration_min <= 0:
                errors.append(f"Leg {leg.leg_id} has non-positive duration")
                continue
            grouped.setdefault((leg.from_stop_id, leg.to_stop_id, leg.route_id), []).append(leg)

        edges = []
        for (from_id, to_id, route_id), group in sorted(
            grouped.items(), key=lambda item: (item[0][0], item[0][1], item[0][2] or "")
        ):
            edge = self._edge(stops[from_id], stops[to_id], route_id, group)
            if edge.transport_type in SEASONAL_MODES and edge.season is Season.ALL:
                warnings.append(
                    f"{edge.transport_type.value} edge {from_id} -> {to_id} has no season"
                )
            edges.append(edge)

        now = datetime.now(timezone.utc)
        snapshot = GraphSnapshot.build(
            version=version or f"graph-v{int(now.timestamp() * 1000)}",
            nodes=stops.keys(),
            edges=edges,
            built_at=now.replace(tzinfo=None),
            build_duration_ms=int((time.perf_counter() - started) * 1000),
            dataset_version=_dataset_version(legs),
        )
        for message in errors:
            logger.warning("Graph build: %s", message)
        logger.info(
            "Built graph %s: %d nodes, %d edges (%d legs skipped)",
            snapshot.version,
            snapshot.metadata.node_count,
            snapshot.metadata.edge_count,
            len(errors),
        )
        return GraphBuildReport(
            snapshot=snapshot, errors=tuple(errors), warnings=tuple(warnings)
        )

    def build_and_publish(self, graph_repository: IGraphRepository) -> GraphBuildReport:
        report = self.build_snapshot()
        if report.snapshot.metadata.edge_count == 0:
            raise RuntimeError("Refusing to publish a graph without edges")
        graph_repository.publish(report.snapshot)
        logger.info("Published graph %s", report.snapshot.version)
        return report

    def _edge(
        self, start: Stop, end: Stop, route_id: str | None, legs: list[ScheduledLeg]
    ) -> GraphEdge:
        fastest = min(legs, key=lambda leg: leg.duration_min)
        seasons = {leg.season for leg in legs}
        season = seasons.pop() if len(seasons) == 1 else Season.ALL
        factor = DETOUR_FACTORS.get(fastest.transport_type, 1.0)
        return GraphEdge(
            from_id=start.id,
            to_id=end.id,
            weight=float(fastest.duration_min),
            distance_km=round(haversine_distance_km(start.location, end.location) * factor, 1),
            transport_type=fastest.transport_type,
            route_id=route_id,
            season=season,
        )


def _dataset_version(legs: tuple[ScheduledLeg, ...] | list[ScheduledLeg]) -> str:
    digest = hashlib.sha256()
    for leg_id in sorted(leg.leg_id for leg in legs):
        digest.update(leg_id.encode("utf-8"))
    return digest.hexdigest()[:12]
