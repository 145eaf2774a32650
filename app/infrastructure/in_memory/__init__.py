"""Implementaciones in-memory (runtime por defecto y testing)."""

from app.infrastructure.in_memory.booking_store import InMemoryBookingStore
from app.infrastructure.in_memory.car_store import InMemoryCarStore
from app.infrastructure.in_memory.notification_sink import InMemoryNotificationSink
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager

__all__ = [
    # Stores
    "InMemoryBookingStore",
    "InMemoryCarStore",
    "InMemoryNotificationSink",
    # Gateways
    "StubPaymentGateway",
    # Infrastructure
    "NoopTransactionManager",
]
