from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.domain.errors import DriverUnavailableError, ValidationError
from app.domain.pricing import (
    HourlyPricingPolicy,
    PricingConfig,
    PricingEngine,
    TieredPricingPolicy,
    policy_for,
)
from app.domain.value_objects.rental_window import RentalWindow
from tests.factories import make_car

END = datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)
WINDOW = RentalWindow(start=END - timedelta(hours=24), end=END)


class TestBasePrice:
    """Tarifa base por tramos y por hora."""

    def test_exact_tier_is_used(self):
        engine = PricingEngine()
        breakdown = engine.price(make_car(), 36)
        assert breakdown.base_price == Decimal("2900")
        assert breakdown.total == Decimal("2900")

    def test_duration_without_tier_falls_back_to_daily_rate_rounded_up(self):
        car = make_car(tier_prices={24: Decimal("2000")})
        assert TieredPricingPolicy().base_price(car, 30) == Decimal("4000")

    def test_missing_fallback_tier_is_a_validation_error(self):
        car = make_car(tier_prices={12: Decimal("1200")})
        with pytest.raises(ValidationError):
            TieredPricingPolicy().base_price(car, 36)

    def test_hourly_rate_for_cars_without_tiers(self):
        car = make_car(tier_prices={}, hourly_rate=Decimal("150"))
        assert isinstance(policy_for(car), HourlyPricingPolicy)
        assert PricingEngine().price(car, 12).base_price == Decimal("1800")

    def test_hourly_car_without_rate_is_rejected(self):
        car = make_car(tier_prices={}, hourly_rate=None)
        with pytest.raises(ValidationError):
            PricingEngine().price(car, 12)


class TestExtras:
    """Chofer y entrega a domicilio."""

    def test_driver_charge_per_started_day(self):
        breakdown = PricingEngine().price(make_car(), 36, with_driver=True)
        assert breakdown.driver_charge == Decimal("1600")
        assert breakdown.total == Decimal("4500")

    def test_driver_requested_on_car_without_driver(self):
        car = make_car(driver_available=False)
        with pytest.raises(DriverUnavailableError):
            PricingEngine().price(car, 24, with_driver=True)

    def test_delivery_within_range_adds_flat_fee(self):
        breakdown = PricingEngine().price(
            make_car(), 24, home_delivery=True, delivery_distance_km=Decimal("5")
        )
        assert breakdown.delivery_fee == Decimal("500")
        assert breakdown.total == Decimal("2500")

    def test_delivery_beyond_range_is_not_charged(self):
        engine = PricingEngine()
        breakdown = engine.price(make_car(), 24, home_delivery=True, delivery_distance_km=Decimal("7.5"))
        assert breakdown.delivery_fee == Decimal("0")
        assert engine.delivery_in_range(Decimal("7.5")) is False

    def test_negative_distance_is_rejected(self):
        with pytest.raises(ValidationError):
            PricingEngine().price(make_car(), 24, home_delivery=True, delivery_distance_km=Decimal("-1"))

    def test_configured_fee_is_used(self):
        engine = PricingEngine(PricingConfig(delivery_flat_fee=Decimal("250")))
        assert engine.price(make_car(), 24, home_delivery=True).delivery_fee == Decimal("250")


class TestDuration:
    @pytest.mark.parametrize("hours", [12, 24, 84])
    def test_multiples_of_twelve_are_accepted(self, hours):
        PricingEngine().validate_duration(hours)

    @pytest.mark.parametrize("hours", [0, -12, 10, 30])
    def test_other_durations_are_rejected(self, hours):
        with pytest.raises(ValidationError) as exc_info:
            PricingEngine().validate_duration(hours)
        assert exc_info.value.field == "duration_hours"


class TestLateFee:
    """Cualquier fracción de hora tarde cuenta como hora completa."""

    def test_two_hours_ten_minutes_late_is_three_hours(self):
        hours, fee = PricingEngine().late_fee(WINDOW, END + timedelta(hours=2, minutes=10))
        assert hours == 3
        assert fee == Decimal("300")

    def test_exactly_two_hours_late_is_two_hours(self):
        hours, fee = PricingEngine().late_fee(WINDOW, END + timedelta(hours=2))
        assert hours == 2
        assert fee == Decimal("200")

    def test_on_time_and_early_returns_are_free(self):
        engine = PricingEngine()
        assert engine.late_fee(WINDOW, END) == (0, Decimal("0"))
        assert engine.late_fee(WINDOW, END - timedelta(hours=5)) == (0, Decimal("0"))

    def test_one_second_late_is_one_hour(self):
        hours, _ = PricingEngine().late_fee(WINDOW, END + timedelta(seconds=1))
        assert hours == 1
