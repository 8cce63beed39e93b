from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Sequence

from src.app.ports.output import IFlightRepository, IStopRepository
from src.domain.exceptions import NoPathFound, RoutingError
from src.domain.models import GraphEdge, RouteSegment, ScheduledLeg, Stop


@dataclass(slots=True)
class SegmentAssembler:
    """Turns an abstract edge path into scheduled RouteSegments.

    Each edge is bound to the earliest leg running on the travel day that
    departs after the previous segment arrives. A leg that only connects on
    the following day is taken with a one-day rollover.
    """

    stop_repository: IStopRepository
    flight_repository: IFlightRepository
    max_rollover_days: int = 1

    def assemble(
        self,
        edges: Sequence[GraphEdge],
        travel_date: date,
        earliest_departure: datetime | None = None,
    ) -> tuple[RouteSegment, ...]:
        segments: list[RouteSegment] = []
        ready_at = earliest_departure

        for index, edge in enumerate(edges):
            leg, departure = self._pick_leg(edge, travel_date, ready_at)
            from_stop = self._stop(edge.from_id)
            to_stop = self._stop(edge.to_id)
            arrival = departure + timedelta(minutes=leg.duration_min)

            segments.append(
                RouteSegment(
                    segment_id=f"seg-{index + 1}-{edge.from_id}-{edge.to_id}",
                    from_stop=from_stop,
                    to_stop=to_stop,
                    transport_type=edge.transport_type,
                    distance_km=edge.distance_km,
                    duration_min=leg.duration_min,
                    departure=departure,
                    arrival=arrival,
                    route_id=leg.route_id or edge.route_id,
                    leg=leg,
                )
            )
            ready_at = arrival

        return tuple(segments)

    def _pick_leg(
        self, edge: GraphEdge, travel_date: date, ready_at: datetime | None
    ) -> tuple[ScheduledLeg, datetime]:
        start_day = ready_at.date() if ready_at is not None else travel_date
        # The first segment must leave on the requested day itself.
        window = self.max_rollover_days + 1 if ready_at is not None else 1

        for offset in range(window):
            day = start_day + timedelta(days=offset)
            legs = self.flight_repository.get_flights_between_stops(
                edge.from_id, edge.to_id, day
            )
            candidates: list[tuple[datetime, ScheduledLeg]] = []
            for leg in legs:
                if not leg.runs_on(day):
                    continue
                if edge.route_id and leg.route_id and leg.route_id != edge.route_id:
                    continue
                departure = leg.departure_on(day)
                if ready_at is not None and departure < ready_at:
                    continue
                candidates.append((departure, leg))

            if candidates:
                candidates.sort(key=lambda item: (item[0], item[1].duration_min))
                departure, leg = candidates[0]
                return leg, departure

        raise NoPathFound(
            f"No active departure {edge.from_id} -> {edge.to_id} on {travel_date.isoformat()}"
        )

    def _stop(self, stop_id: str) -> Stop:
        stop = self.stop_repository.find_real_stop_by_id(stop_id)
        if stop is None:
            stop = self.stop_repository.find_virtual_stop_by_id(stop_id)
        if stop is None:
            raise RoutingError(f"Stop metadata missing for {stop_id}")
        return stop
