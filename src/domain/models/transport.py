from __future__ import annotations

from datetime import date
from enum import Enum


class TransportType(str, Enum):
    AIRPLANE = "airplane"
    TRAIN = "train"
    BUS = "bus"
    FERRY = "ferry"
    WINTER_ROAD = "winter_road"
    TAXI = "taxi"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> "TransportType":
        value = (raw or "").strip().lower()
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN


class Season(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"
    TRANSITION = "transition"
    ALL = "all"

    @classmethod
    def for_date(cls, day: date) -> "Season":
        """Navigation season of a calendar day.

        Summer runs Jun 1 - Oct 18 (river navigation), winter Nov 1 - Apr 15
        (ice roads). Everything else is the transition between them.
        """

        month, dom = day.month, day.day
        if (6 <= month <= 9) or (month == 10 and dom <= 18):
            return cls.SUMMER
        if month in (11, 12, 1, 2, 3) or (month == 4 and dom <= 15):
            return cls.WINTER
        return cls.TRANSITION

    def is_available_on(self, day: date) -> bool:
        if self is Season.ALL:
            return True
        current = Season.for_date(day)
        # Limited service is still service.
        return current is self or current is Season.TRANSITION
