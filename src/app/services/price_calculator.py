from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping

from src.domain.models import (
    AdditionalExpenses,
    PriceBreakdown,
    PriceContext,
    Season,
    ServiceClass,
    TransportType,
)

T = TransportType

BASE_RATES_RUB_PER_KM: Mapping[TransportType, float] = {
    T.AIRPLANE: 5.0,
    T.TRAIN: 1.5,
    T.BUS: 4.0,
    T.FERRY: 6.0,
    T.WINTER_ROAD: 7.5,
    T.TAXI: 15.0,
    T.UNKNOWN: 5.0,
}

# 0.0 means the mode does not operate in that season.
SEASON_COEFFICIENTS: Mapping[Season, Mapping[TransportType, float]] = {
    Season.SUMMER: {T.WINTER_ROAD: 0.0},
    Season.WINTER: {T.AIRPLANE: 1.2, T.BUS: 1.1, T.TAXI: 1.1, T.FERRY: 0.0},
    Season.TRANSITION: {T.AIRPLANE: 1.1, T.FERRY: 0.5, T.WINTER_ROAD: 0.5},
    Season.ALL: {},
}

REGION_COEFFICIENTS: Mapping[str, float] = {
    "russia": 1.0,
    "yakutia": 1.3,
    "arctic": 1.5,
}

SERVICE_CLASS_COEFFICIENTS: Mapping[ServiceClass, float] = {
    ServiceClass.ECONOMY: 1.0,
    ServiceClass.BUSINESS: 2.0,
    ServiceClass.FIRST: 3.5,
}

TAXI_RATE_RUB_PER_KM: Mapping[str, float] = {
    "yakutsk": 35.0,
    "moscow": 25.0,
    "irkutsk": 30.0,
    "mirny": 40.0,
}
TAXI_DEFAULT_RATE = 30.0
TAXI_BOARDING_FEE: Mapping[str, int] = {
    "yakutsk": 120,
    "moscow": 175,
    "irkutsk": 125,
    "mirny": 145,
}
TAXI_DEFAULT_BOARDING_FEE = 120
TAXI_MINIMUM = 200
TAXI_ESTIMATED_KM: Mapping[TransportType, float] = {T.AIRPLANE: 15.0, T.TRAIN: 5.0}

AIR_BAGGAGE_ALLOWANCE_FEE = 2500
AIR_BAGGAGE_FREE_KG = 20.0
AIR_BAGGAGE_RUB_PER_KG = 150
TRAIN_BAGGAGE_FREE_KG = 36.0
TRAIN_BAGGAGE_RUB_PER_KG = 50

AIRPORT_FEE = 750
CHECK_IN_FEE = 750
TRAIN_FEE_RATE = 0.02
TRAIN_FEE_MINIMUM = 200
TRAIN_MEAL_FEE = 1000
INSURANCE_RATE = 0.015
INSURANCE_MINIMUM = 500

TRANSFER_FEE = 750

EVENING_START_HOUR = 18


def round_rub(value: float) -> int:
    """Round half up to whole rubles."""

    return int(math.floor(value + 0.5))


def date_coefficient(travel_date: date | None, booking_date: date | None) -> float:
    if travel_date is None:
        return 1.0
    days_ahead = (travel_date - (booking_date or date.today())).days
    if days_ahead >= 30:
        return 0.9
    if 1 <= days_ahead <= 7:
        return 1.2
    return 1.0


def time_coefficient(context: PriceContext) -> float:
    if context.departure_time is None:
        return 1.0
    return 1.1 if context.departure_time.hour >= EVENING_START_HOUR else 1.0


def route_type_coefficient(hub_count: int) -> float:
    return 1.0 + 0.1 * max(0, hub_count)


@dataclass(slots=True)
class PriceCalculator:
    """Dynamic per-segment pricing with strategy tables keyed by transport type."""

    def rate_per_km(self, transport_type: TransportType) -> float:
        return BASE_RATES_RUB_PER_KM.get(transport_type, BASE_RATES_RUB_PER_KM[T.UNKNOWN])

    def season_coefficient(self, transport_type: TransportType, season: Season) -> float:
        return SEASON_COEFFICIENTS.get(season, {}).get(transport_type, 1.0)

    def is_available(self, transport_type: TransportType, season: Season) -> bool:
        return self.season_coefficient(transport_type, season) > 0.0

    def calculate_base_price(
        self, transport_type: TransportType, context: PriceContext, hub_count: int = 0
    ) -> int:
        season_coeff = self.season_coefficient(transport_type, context.season)
        if season_coeff == 0.0 or context.distance_km <= 0:
            return 0

        region_coeff = REGION_COEFFICIENTS.get((context.region or "").lower(), 1.0)
        class_coeff = 1.0
        if transport_type in (T.AIRPLANE, T.TRAIN):
            class_coeff = SERVICE_CLASS_COEFFICIENTS[context.service_class]

        price = (
            context.distance_km
            * self.rate_per_km(transport_type)
            * date_coefficient(context.travel_date, context.booking_date)
            * time_coefficient(context)
            * route_type_coefficient(hub_count)
            * season_coeff
            * region_coeff
            * class_coeff
        )
        return round_rub(price)

    def calculate_additional_expenses(
        self,
        transport_type: TransportType,
        context: PriceContext,
        base_price: int,
        origin_city_id: str | None = None,
    ) -> AdditionalExpenses:
        return AdditionalExpenses(
            taxi=self._taxi(transport_type, context, origin_city_id),
            baggage=self._baggage(transport_type, context),
            fees=self._fees(transport_type, context, base_price),
            transfer=TRANSFER_FEE * max(0, context.transfers_count),
        )

    def calculate_segment_price(
        self,
        transport_type: TransportType,
        context: PriceContext,
        *,
        hub_count: int = 0,
        declared_price: float | None = None,
        origin_city_id: str | None = None,
        passengers: int = 1,
    ) -> PriceBreakdown:
        """Per-passenger breakdown scaled component by component."""

        if declared_price is not None and declared_price > 0:
            base = round_rub(declared_price)
        else:
            base = self.calculate_base_price(transport_type, context, hub_count)
        expenses = self.calculate_additional_expenses(
            transport_type, context, base, origin_city_id
        )
        return PriceBreakdown.from_parts(base, expenses).scaled(max(1, passengers))

    def aggregate(self, breakdowns: Iterable[PriceBreakdown]) -> PriceBreakdown:
        return PriceBreakdown.aggregate(breakdowns)

    def _taxi(
        self,
        transport_type: TransportType,
        context: PriceContext,
        origin_city_id: str | None,
    ) -> int:
        if transport_type not in TAXI_ESTIMATED_KM:
            return 0
        city = (origin_city_id or "").lower()
        km = context.taxi_distance_km
        if km is None:
            km = TAXI_ESTIMATED_KM[transport_type]
        rate = TAXI_RATE_RUB_PER_KM.get(city, TAXI_DEFAULT_RATE)
        fee = TAXI_BOARDING_FEE.get(city, TAXI_DEFAULT_BOARDING_FEE)
        return max(TAXI_MINIMUM, round_rub(fee + rate * km))

    def _baggage(self, transport_type: TransportType, context: PriceContext) -> int:
        weight = context.baggage_weight_kg
        if weight <= 0:
            return 0
        if transport_type is T.AIRPLANE:
            overage = max(0.0, weight - AIR_BAGGAGE_FREE_KG)
            return AIR_BAGGAGE_ALLOWANCE_FEE + round_rub(overage * AIR_BAGGAGE_RUB_PER_KG)
        if transport_type is T.TRAIN:
            overage = max(0.0, weight - TRAIN_BAGGAGE_FREE_KG)
            return round_rub(overage * TRAIN_BAGGAGE_RUB_PER_KG)
        return 0

    def _fees(
        self, transport_type: TransportType, context: PriceContext, base_price: int
    ) -> int:
        fees = 0
        if transport_type is T.AIRPLANE:
            fees += AIRPORT_FEE + CHECK_IN_FEE
        elif transport_type is T.TRAIN:
            fees += max(TRAIN_FEE_MINIMUM, round_rub(base_price * TRAIN_FEE_RATE))
            if context.meal:
                fees += TRAIN_MEAL_FEE
        if context.insurance:
            fees += max(INSURANCE_MINIMUM, round_rub(base_price * INSURANCE_RATE))
        return fees
