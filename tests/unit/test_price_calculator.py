from __future__ import annotations

from datetime import date, time

import pytest

from src.app.services.price_calculator import (
    PriceCalculator,
    date_coefficient,
    round_rub,
    route_type_coefficient,
)
from src.domain.models import PriceBreakdown, PriceContext, Season, ServiceClass, TransportType

T = TransportType


@pytest.fixture
def calc() -> PriceCalculator:
    return PriceCalculator()


def test_round_half_up() -> None:
    assert round_rub(2.5) == 3
    assert round_rub(3.5) == 4
    assert round_rub(2.49) == 2


@pytest.mark.parametrize(
    ("days_ahead", "expected"),
    [(45, 0.9), (30, 0.9), (7, 1.2), (1, 1.2), (0, 1.0), (14, 1.0), (-3, 1.0)],
)
def test_date_coefficient(days_ahead: int, expected: float) -> None:
    booking = date(2030, 1, 1)
    travel = date.fromordinal(booking.toordinal() + days_ahead)
    assert date_coefficient(travel, booking) == expected


def test_route_type_coefficient_grows_with_hubs() -> None:
    assert route_type_coefficient(0) == 1.0
    assert route_type_coefficient(2) == pytest.approx(1.2)


def test_base_price_multiplies_all_coefficients(calc: PriceCalculator) -> None:
    context = PriceContext(
        distance_km=1000.0,
        season=Season.WINTER,
        travel_date=date(2030, 3, 5),
        booking_date=date(2030, 3, 1),
        departure_time=time(19, 0),
        service_class=ServiceClass.BUSINESS,
        region="yakutia",
    )

    price = calc.calculate_base_price(T.AIRPLANE, context, hub_count=1)

    # 1000 km * 5 * 1.2 (date) * 1.1 (evening) * 1.1 (hub) * 1.2 (winter) * 1.3 * 2.0
    assert price == round_rub(1000 * 5 * 1.2 * 1.1 * 1.1 * 1.2 * 1.3 * 2.0)


def test_mode_out_of_season_costs_nothing(calc: PriceCalculator) -> None:
    context = PriceContext(distance_km=100.0, season=Season.WINTER)
    assert calc.calculate_base_price(T.FERRY, context) == 0
    assert not calc.is_available(T.FERRY, Season.WINTER)
    assert calc.is_available(T.WINTER_ROAD, Season.WINTER)


def test_segment_price_total_is_sum_of_components(calc: PriceCalculator) -> None:
    context = PriceContext(
        distance_km=800.0,
        baggage_weight_kg=25.0,
        insurance=True,
        transfers_count=1,
    )

    price = calc.calculate_segment_price(T.AIRPLANE, context, origin_city_id="yakutsk")

    assert price.base == 4000
    assert price.taxi == round_rub(120 + 35.0 * 15.0)
    assert price.baggage == 2500 + 750
    assert price.fees == 750 + 750 + 500
    assert price.transfer == 750
    assert price.total == (
        price.base + price.taxi + price.baggage + price.fees + price.transfer
    )


def test_train_fees_and_meal(calc: PriceCalculator) -> None:
    context = PriceContext(distance_km=2000.0, meal=True, baggage_weight_kg=40.0)

    price = calc.calculate_segment_price(T.TRAIN, context)

    assert price.base == 3000
    assert price.fees == 200 + 1000
    assert price.baggage == 200
    assert price.taxi == round_rub(120 + 30.0 * 5.0)


def test_declared_price_replaces_base(calc: PriceCalculator) -> None:
    price = calc.calculate_segment_price(
        T.BUS, PriceContext(distance_km=300.0), declared_price=1499.5
    )
    assert price.base == 1500
    assert price.taxi == 0


def test_passengers_scale_every_component(calc: PriceCalculator) -> None:
    context = PriceContext(distance_km=500.0, transfers_count=1)
    one = calc.calculate_segment_price(T.AIRPLANE, context)
    three = calc.calculate_segment_price(T.AIRPLANE, context, passengers=3)

    assert three == one.scaled(3)
    assert three.total == 3 * one.total


def test_aggregate_is_componentwise(calc: PriceCalculator) -> None:
    total = calc.aggregate(
        [
            PriceBreakdown(base=100, taxi=10, fees=5),
            PriceBreakdown(base=50, baggage=7, transfer=750),
        ]
    )

    assert total == PriceBreakdown(base=150, taxi=10, baggage=7, fees=5, transfer=750)
    assert total.total == 922
