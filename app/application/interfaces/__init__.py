"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.booking_store import BookingMutation, BookingStore
from app.application.interfaces.car_store import CarStore
from app.application.interfaces.clock import Clock, FakeClock, SystemClock
from app.application.interfaces.id_generator import (
    IdGenerator,
    SequentialIdGenerator,
    UUIDIdGenerator,
)
from app.application.interfaces.notification_sink import NotificationSink
from app.application.interfaces.payment_gateway import (
    EVENT_OTHER,
    EVENT_PAYMENT_FAILED,
    EVENT_PAYMENT_SUCCEEDED,
    GatewayEvent,
    GatewayOrder,
    PaymentDetails,
    PaymentGateway,
    RefundResult,
)
from app.application.interfaces.transaction_manager import TransactionManager

__all__ = [
    # Stores
    "BookingStore",
    "BookingMutation",
    "CarStore",
    "NotificationSink",
    # Gateways
    "PaymentGateway",
    "GatewayOrder",
    "GatewayEvent",
    "RefundResult",
    "PaymentDetails",
    "EVENT_PAYMENT_SUCCEEDED",
    "EVENT_PAYMENT_FAILED",
    "EVENT_OTHER",
    # Infrastructure
    "TransactionManager",
    # Utilities
    "Clock",
    "SystemClock",
    "FakeClock",
    "IdGenerator",
    "UUIDIdGenerator",
    "SequentialIdGenerator",
]
