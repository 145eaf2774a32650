"""
Motor de precios de la renta.

Funciones puras: dado el auto, la duración y los extras, calcula el desglose
del precio. Nunca toca persistencia. La política de tarifa base se inyecta
por auto (tabla de tramos o tarifa por hora), en lugar de duplicar la lógica
para cada variante del catálogo.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.domain.constants import DAY_HOURS
from app.domain.entities.car import Car
from app.domain.errors import DriverUnavailableError, ValidationError
from app.domain.value_objects.rental_window import RentalWindow

ZERO = Decimal("0")


def _units(duration_hours: int, unit_hours: int) -> int:
    """Cantidad de unidades completas, siempre redondeando hacia arriba."""
    return math.ceil(duration_hours / unit_hours)


@dataclass(frozen=True)
class PriceBreakdown:
    """Desglose del precio de una reserva."""

    base_price: Decimal
    driver_charge: Decimal
    delivery_fee: Decimal

    @property
    def total(self) -> Decimal:
        return self.base_price + self.driver_charge + self.delivery_fee


@dataclass(frozen=True)
class PricingConfig:
    """Parámetros de negocio del cálculo de precios."""

    delivery_flat_fee: Decimal = Decimal("500")
    delivery_max_distance_km: Decimal = Decimal("5")
    late_fee_per_hour: Decimal = Decimal("100")
    duration_unit_hours: int = 12


class PricingPolicy(ABC):
    """Estrategia de precio base para una clase de auto."""

    @abstractmethod
    def base_price(self, car: Car, duration_hours: int) -> Decimal:
        raise NotImplementedError


class TieredPricingPolicy(PricingPolicy):
    """
    Precio por tramos fijos (12/24/36/48/60/72 h).

    Si la duración no coincide con ningún tramo se cobra el tramo de
    `fallback_tier_hours` por cada unidad iniciada: 30 h con el tramo de
    24 h cuestan dos veces el precio de 24 h.
    """

    def __init__(self, fallback_tier_hours: int = DAY_HOURS) -> None:
        self._fallback_tier_hours = fallback_tier_hours

    def base_price(self, car: Car, duration_hours: int) -> Decimal:
        if duration_hours in car.tier_prices:
            return Decimal(car.tier_prices[duration_hours])
        fallback = car.tier_prices.get(self._fallback_tier_hours)
        if fallback is None:
            raise ValidationError(
                field="car_id",
                message=f"el auto {car.id} no tiene tarifa de {self._fallback_tier_hours} h",
            )
        return Decimal(fallback) * _units(duration_hours, self._fallback_tier_hours)


class HourlyPricingPolicy(PricingPolicy):
    """Precio por hora, para autos sin tabla de tramos."""

    def base_price(self, car: Car, duration_hours: int) -> Decimal:
        if car.hourly_rate is None:
            raise ValidationError(field="car_id", message=f"el auto {car.id} no tiene tarifa")
        return Decimal(car.hourly_rate) * _units(duration_hours, 1)


def policy_for(car: Car) -> PricingPolicy:
    """Elige la política de tarifa según cómo está tarifado el auto."""
    if car.uses_tier_pricing:
        return TieredPricingPolicy()
    return HourlyPricingPolicy()


class PricingEngine:
    def __init__(self, config: PricingConfig | None = None) -> None:
        self._config = config or PricingConfig()

    @property
    def config(self) -> PricingConfig:
        return self._config

    def validate_duration(self, duration_hours: int) -> None:
        """La duración debe ser un múltiplo positivo de la unidad de renta."""
        unit = self._config.duration_unit_hours
        if duration_hours <= 0 or duration_hours % unit != 0:
            raise ValidationError(
                field="duration_hours",
                message=f"la duración debe ser múltiplo de {unit} horas",
            )

    def price(
        self,
        car: Car,
        duration_hours: int,
        with_driver: bool = False,
        home_delivery: bool = False,
        delivery_distance_km: Decimal = ZERO,
    ) -> PriceBreakdown:
        base_price = policy_for(car).base_price(car, duration_hours)

        driver_charge = ZERO
        if with_driver:
            if not car.driver_available:
                raise DriverUnavailableError(car.id)
            driver_charge = Decimal(car.driver_charge_per_day) * _units(duration_hours, DAY_HOURS)

        distance = Decimal(delivery_distance_km or 0)
        if distance < 0:
            raise ValidationError(field="delivery_distance_km", message="no puede ser negativa")
        delivery_fee = ZERO
        # Más allá del umbral no se cobra envío
        if home_delivery and distance <= self._config.delivery_max_distance_km:
            delivery_fee = self._config.delivery_flat_fee

        return PriceBreakdown(
            base_price=base_price,
            driver_charge=driver_charge,
            delivery_fee=delivery_fee,
        )

    def delivery_in_range(self, delivery_distance_km: Decimal) -> bool:
        return Decimal(delivery_distance_km or 0) <= self._config.delivery_max_distance_km

    def late_fee(self, window: RentalWindow, actual_return: datetime) -> tuple[int, Decimal]:
        """
        Recargo por devolución tardía.

        Returns:
            Tupla (horas de retraso, recargo). Devolver a tiempo o antes da (0, 0);
            no hay descuento por devolución anticipada.
        """
        late_hours = window.late_hours(actual_return)
        return late_hours, self._config.late_fee_per_hour * late_hours
