"""Value Objects del dominio de reservas."""

from app.domain.value_objects.money import Money
from app.domain.value_objects.rental_window import RentalWindow, ensure_utc

__all__ = [
    "Money",
    "RentalWindow",
    "ensure_utc",
]
