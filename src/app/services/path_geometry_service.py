from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Mapping

from src.app.ports.output import IRoadRoutingProvider
from src.domain.algorithms.polyline import (
    great_circle_polyline,
    ice_road_wave,
    river_wave,
    straight_polyline,
    wavy_polyline,
)
from src.domain.exceptions import ExternalServiceDegraded
from src.domain.models import BuiltRoute, GeoPoint, RouteSegment, TransportType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeometryResult:
    points: tuple[GeoPoint, ...]
    source: str
    degraded: bool = False


# Strategy table: transport type -> renderer method name.
_RENDERERS: Mapping[TransportType, str] = {
    TransportType.AIRPLANE: "_great_circle",
    TransportType.BUS: "_road",
    TransportType.TAXI: "_road",
    TransportType.FERRY: "_river",
    TransportType.WINTER_ROAD: "_ice_road",
    TransportType.TRAIN: "_straight",
    TransportType.UNKNOWN: "_straight",
}


@dataclass(slots=True)
class PathGeometryService:
    """Renderable coordinate sequences per segment.

    Road geometry is a soft dependency: any provider failure degrades to a
    straight line and is logged, it never fails the caller.
    """

    road_provider: IRoadRoutingProvider | None = None
    river_coefficient: float = 1.2
    ice_road_amplitude: float = 0.08
    road_profile: str = "driving"

    async def geometry_for(
        self, transport_type: TransportType, start: GeoPoint, end: GeoPoint
    ) -> GeometryResult:
        renderer = getattr(self, _RENDERERS.get(transport_type, "_straight"))
        return await renderer(start, end)

    async def render_segment(self, segment: RouteSegment) -> RouteSegment:
        result = await self.geometry_for(
            segment.transport_type,
            segment.from_stop.location,
            segment.to_stop.location,
        )
        return replace(
            segment,
            geometry=result.points,
            geometry_source=result.source,
            geometry_degraded=result.degraded,
        )

    async def render_route(self, route: BuiltRoute) -> BuiltRoute:
        segments = await asyncio.gather(
            *(self.render_segment(s) for s in route.segments)
        )
        return replace(route, segments=tuple(segments))

    async def _great_circle(self, start: GeoPoint, end: GeoPoint) -> GeometryResult:
        return GeometryResult(points=great_circle_polyline(start, end), source="great_circle")

    async def _straight(self, start: GeoPoint, end: GeoPoint) -> GeometryResult:
        return GeometryResult(points=straight_polyline(start, end), source="straight")

    async def _river(self, start: GeoPoint, end: GeoPoint) -> GeometryResult:
        amplitude = max(0.0, self.river_coefficient - 1.0) * 0.4
        points = wavy_polyline(start, end, amplitude_ratio=amplitude, wave=river_wave)
        return GeometryResult(points=points, source="river")

    async def _ice_road(self, start: GeoPoint, end: GeoPoint) -> GeometryResult:
        points = wavy_polyline(
            start,
            end,
            amplitude_ratio=self.ice_road_amplitude,
            wave=ice_road_wave,
            km_per_point=30.0,
        )
        return GeometryResult(points=points, source="ice_road")

    async def _road(self, start: GeoPoint, end: GeoPoint) -> GeometryResult:
        if start == end:
            return GeometryResult(points=(start,), source="road")
        if self.road_provider is None:
            return GeometryResult(
                points=straight_polyline(start, end), source="road_fallback", degraded=True
            )

        try:
            route = await self.road_provider.get_route(
                start=start, end=end, profile=self.road_profile
            )
        except ExternalServiceDegraded as exc:
            logger.warning(
                "Road routing degraded for %s -> %s, using straight line: %s",
                start.rounded(),
                end.rounded(),
                exc,
            )
            return GeometryResult(
                points=straight_polyline(start, end), source="road_fallback", degraded=True
            )

        points = route.points
        if len(points) < 2:
            points = straight_polyline(start, end)
        return GeometryResult(points=points, source="road")
