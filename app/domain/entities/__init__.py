"""Entidades del dominio de reservas."""

from app.domain.entities.booking import (
    Booking,
    CustomerVerification,
    DocumentHandles,
    ReferenceContact,
)
from app.domain.entities.car import Car
from app.domain.entities.notification import Notification

__all__ = [
    # Booking
    "Booking",
    "CustomerVerification",
    "DocumentHandles",
    "ReferenceContact",
    # Car
    "Car",
    # Notification
    "Notification",
]
