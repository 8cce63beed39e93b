from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Iterable

from .transport import Season


class ServiceClass(str, Enum):
    ECONOMY = "economy"
    BUSINESS = "business"
    FIRST = "first"


@dataclass(frozen=True, slots=True)
class PriceContext:
    distance_km: float
    season: Season = Season.ALL
    travel_date: date | None = None
    booking_date: date | None = None
    departure_time: time | None = None
    service_class: ServiceClass = ServiceClass.ECONOMY
    region: str | None = None
    baggage_weight_kg: float = 0.0
    insurance: bool = False
    meal: bool = False
    transfers_count: int = 0
    taxi_distance_km: float | None = None


@dataclass(frozen=True, slots=True)
class AdditionalExpenses:
    taxi: int = 0
    baggage: int = 0
    fees: int = 0
    transfer: int = 0

    @property
    def total(self) -> int:
        return self.taxi + self.baggage + self.fees + self.transfer


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    """Price of a segment (or a whole route) in whole rubles.

    `total` is derived from the components, never stored.
    """

    base: int = 0
    taxi: int = 0
    baggage: int = 0
    fees: int = 0
    transfer: int = 0

    @property
    def total(self) -> int:
        return self.base + self.taxi + self.baggage + self.fees + self.transfer

    @property
    def additional(self) -> AdditionalExpenses:
        return AdditionalExpenses(
            taxi=self.taxi, baggage=self.baggage, fees=self.fees, transfer=self.transfer
        )

    @classmethod
    def from_parts(cls, base: int, expenses: AdditionalExpenses) -> "PriceBreakdown":
        return cls(
            base=base,
            taxi=expenses.taxi,
            baggage=expenses.baggage,
            fees=expenses.fees,
            transfer=expenses.transfer,
        )

    def scaled(self, factor: int) -> "PriceBreakdown":
        return PriceBreakdown(
            base=self.base * factor,
            taxi=self.taxi * factor,
            baggage=self.baggage * factor,
            fees=self.fees * factor,
            transfer=self.transfer * factor,
        )

    @classmethod
    def aggregate(cls, items: Iterable["PriceBreakdown"]) -> "PriceBreakdown":
        base = taxi = baggage = fees = transfer = 0
        for item in items:
            base += item.base
            taxi += item.taxi
            baggage += item.baggage
            fees += item.fees
            transfer += item.transfer
        return cls(base=base, taxi=taxi, baggage=baggage, fees=fees, transfer=transfer)
