"""
Capa de Dominio - Sistema de Reservas de Autos.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects, la máquina de estados, el motor de precios
y las excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Booking, Car, Notification)
- value_objects/: Objetos de valor inmutables (Money, RentalWindow)
- state_machine.py: Tabla de transiciones de la reserva
- pricing.py: Motor de precios y recargo por devolución tardía
- errors.py: Excepciones específicas del dominio
- constants.py: Constantes del dominio
"""

from app.domain.entities import (
    Booking,
    Car,
    CustomerVerification,
    DocumentHandles,
    Notification,
    ReferenceContact,
)
from app.domain.errors import (
    AccessDeniedError,
    BookingNotFoundError,
    CarNotFoundError,
    CarUnavailableError,
    ConcurrentBookingConflictError,
    DomainError,
    DriverUnavailableError,
    InvalidTransitionError,
    NotificationNotFoundError,
    PaymentGatewayError,
    PaymentVerificationFailedError,
    RefundNotAllowedError,
    ValidationError,
)
from app.domain.pricing import (
    HourlyPricingPolicy,
    PriceBreakdown,
    PricingConfig,
    PricingEngine,
    PricingPolicy,
    TieredPricingPolicy,
)
from app.domain.state_machine import BookingEvent
from app.domain.value_objects import Money, RentalWindow

__all__ = [
    # Entities
    "Booking",
    "Car",
    "CustomerVerification",
    "DocumentHandles",
    "Notification",
    "ReferenceContact",
    # State machine
    "BookingEvent",
    # Pricing
    "PriceBreakdown",
    "PricingConfig",
    "PricingEngine",
    "PricingPolicy",
    "TieredPricingPolicy",
    "HourlyPricingPolicy",
    # Value Objects
    "Money",
    "RentalWindow",
    # Errors
    "DomainError",
    "ValidationError",
    "DriverUnavailableError",
    "CarUnavailableError",
    "CarNotFoundError",
    "BookingNotFoundError",
    "NotificationNotFoundError",
    "InvalidTransitionError",
    "ConcurrentBookingConflictError",
    "AccessDeniedError",
    "PaymentVerificationFailedError",
    "PaymentGatewayError",
    "RefundNotAllowedError",
]
