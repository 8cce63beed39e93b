from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .transport import Season, TransportType

ALL_DAYS = 0b1111111


def days_mask(*weekdays: int) -> int:
    """Build a days-of-week mask from `date.weekday()` numbers (Monday = 0)."""

    mask = 0
    for day in weekdays:
        if not 0 <= day <= 6:
            raise ValueError(f"Invalid weekday: {day}")
        mask |= 1 << day
    return mask


@dataclass(frozen=True, slots=True)
class ScheduledLeg:
    """A concrete departure of a route between two stops."""

    leg_id: str
    from_stop_id: str
    to_stop_id: str
    transport_type: TransportType
    departure_time: time
    arrival_time: time
    days_of_week: int = ALL_DAYS
    route_id: str | None = None
    price: float | None = None
    capacity: int | None = None
    season: Season = Season.ALL

    def __post_init__(self) -> None:
        if not 0 <= self.days_of_week <= ALL_DAYS:
            raise ValueError(f"Invalid days_of_week mask: {self.days_of_week}")

    def runs_on(self, day: date) -> bool:
        if not self.days_of_week & (1 << day.weekday()):
            return False
        return self.season.is_available_on(day)

    @property
    def duration_min(self) -> int:
        dep = self.departure_time.hour * 60 + self.departure_time.minute
        arr = self.arrival_time.hour * 60 + self.arrival_time.minute
        delta = arr - dep
        if delta <= 0:
            # Arrives the next day.
            delta += 24 * 60
        return delta

    def departure_on(self, day: date) -> datetime:
        return datetime.combine(day, self.departure_time)

    def arrival_on(self, day: date) -> datetime:
        return self.departure_on(day) + timedelta(minutes=self.duration_min)
