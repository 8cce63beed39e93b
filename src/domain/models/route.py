from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from .geo import GeoPoint
from .pricing import PriceBreakdown, ServiceClass
from .schedule import ScheduledLeg
from .stop import Stop
from .transport import TransportType
from .validation import ValidationResult


@dataclass(frozen=True, slots=True)
class RouteSegment:
    segment_id: str
    from_stop: Stop
    to_stop: Stop
    transport_type: TransportType
    distance_km: float
    duration_min: int
    departure: datetime | None = None
    arrival: datetime | None = None
    route_id: str | None = None
    leg: ScheduledLeg | None = None
    price: PriceBreakdown = field(default_factory=PriceBreakdown)
    geometry: tuple[GeoPoint, ...] = ()
    geometry_source: str | None = None
    geometry_degraded: bool = False


@dataclass(frozen=True, slots=True)
class BuiltRoute:
    route_id: str
    from_city: str
    to_city: str
    travel_date: date
    segments: tuple[RouteSegment, ...] = ()
    passengers: int = 1
    graph_version: str | None = None
    fingerprint: str | None = None
    hub_count: int = 0
    service_class: ServiceClass = ServiceClass.ECONOMY
    booking_date: date | None = None
    validation: ValidationResult | None = None
    created_at: datetime | None = None

    @property
    def total_distance_km(self) -> float:
        return float(sum(s.distance_km for s in self.segments))

    @property
    def total_duration_min(self) -> int:
        # Wall-clock time includes waiting between segments when known.
        if self.segments:
            first = self.segments[0].departure
            last = self.segments[-1].arrival
            if first and last:
                return max(0, int((last - first).total_seconds() // 60))
        return int(sum(s.duration_min for s in self.segments))

    @property
    def total_price(self) -> PriceBreakdown:
        return PriceBreakdown.aggregate(s.price for s in self.segments)

    @property
    def transfer_count(self) -> int:
        return max(0, len(self.segments) - 1)
