"""Entidad Car - referencia al catálogo externo de autos."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class Car:
    """
    Auto del catálogo. El núcleo solo lo lee, salvo el flag `available`
    (que puede alternar) y `lock_version` (compare-and-set al comprometer el auto).

    La tarifa viene en una de dos formas: tabla por tramos (12/24/36/48/60/72 h)
    en `tier_prices`, o una tarifa por hora en `hourly_rate` para la variante simple.
    """

    id: str
    name: str
    category: str = "normal"
    registration_number: str | None = None

    # Tarifas
    tier_prices: dict[int, Decimal] = field(default_factory=dict)
    hourly_rate: Decimal | None = None
    security_deposit: Decimal = Decimal("0")

    # Chofer
    driver_available: bool = False
    driver_charge_per_day: Decimal = Decimal("0")

    # Estado mutable
    available: bool = True
    lock_version: int = 0

    @property
    def uses_tier_pricing(self) -> bool:
        """Verifica si el auto tiene tabla de tramos (si no, usa tarifa por hora)."""
        return bool(self.tier_prices)
