"""
Capa de Infraestructura - Sistema de reservas de autos.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).

Estructura:
- db/: Stores SQL (SQLAlchemy Core) y unidad de trabajo
- gateways/: Adaptadores de pasarelas de pago (Razorpay, Stripe)
- in_memory/: Implementaciones in-memory para desarrollo y testing
- circuit_breaker.py: Breaker compartido por las pasarelas de pago
"""

# Database
from app.infrastructure.db.repositories.booking_store_sql import BookingStoreSQL
from app.infrastructure.db.repositories.car_store_sql import CarStoreSQL
from app.infrastructure.db.repositories.notification_sink_sql import NotificationSinkSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

# Gateways
from app.infrastructure.gateways.factory import build_payment_gateway
from app.infrastructure.gateways.razorpay_gateway import RazorpayGateway
from app.infrastructure.gateways.stripe_gateway import StripeGateway

# In-Memory
from app.infrastructure.in_memory import (
    InMemoryBookingStore,
    InMemoryCarStore,
    InMemoryNotificationSink,
    NoopTransactionManager,
    StubPaymentGateway,
)

__all__ = [
    # Database - Stores SQL
    "BookingStoreSQL",
    "CarStoreSQL",
    "NotificationSinkSQL",
    "SQLAlchemyTransactionManager",
    # Gateways
    "RazorpayGateway",
    "StripeGateway",
    "build_payment_gateway",
    # In-Memory Implementations
    "InMemoryBookingStore",
    "InMemoryCarStore",
    "InMemoryNotificationSink",
    "NoopTransactionManager",
    "StubPaymentGateway",
]
