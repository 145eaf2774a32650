"""
Máquina de estados explícita de la reserva.

Cada evento tiene una única tabla de transiciones permitidas; cualquier
combinación (estado, evento) ausente de la tabla es inválida y se reporta
con InvalidTransitionError indicando la acción y el estado actual.

    pending --accept--> payment_pending --confirm_payment--> paid
    paid --start--> active --complete--> completed
    pending --decline--> declined
    (cualquier estado no terminal) --cancel--> cancelled
"""

from enum import Enum

from app.domain.constants import (
    BOOKING_STATUS_ACCEPTED,
    BOOKING_STATUS_ACTIVE,
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_COMPLETED,
    BOOKING_STATUS_DECLINED,
    BOOKING_STATUS_PAID,
    BOOKING_STATUS_PAYMENT_PENDING,
    BOOKING_STATUS_PENDING,
)
from app.domain.errors import InvalidTransitionError


class BookingEvent(str, Enum):
    """Eventos que pueden mover (o no) el estado de una reserva."""

    ACCEPT = "accept"
    DECLINE = "decline"
    ATTACH_ORDER = "create_payment_order"
    CONFIRM_PAYMENT = "confirm_payment"
    FAIL_PAYMENT = "record_payment_failure"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REFUND = "refund"


TRANSITIONS: dict[BookingEvent, dict[str, str]] = {
    BookingEvent.ACCEPT: {
        BOOKING_STATUS_PENDING: BOOKING_STATUS_PAYMENT_PENDING,
    },
    BookingEvent.DECLINE: {
        BOOKING_STATUS_PENDING: BOOKING_STATUS_DECLINED,
    },
    BookingEvent.ATTACH_ORDER: {
        BOOKING_STATUS_ACCEPTED: BOOKING_STATUS_PAYMENT_PENDING,
        BOOKING_STATUS_PAYMENT_PENDING: BOOKING_STATUS_PAYMENT_PENDING,
    },
    BookingEvent.CONFIRM_PAYMENT: {
        BOOKING_STATUS_PAYMENT_PENDING: BOOKING_STATUS_PAID,
    },
    BookingEvent.FAIL_PAYMENT: {
        BOOKING_STATUS_PAYMENT_PENDING: BOOKING_STATUS_PAYMENT_PENDING,
    },
    BookingEvent.START: {
        BOOKING_STATUS_PAID: BOOKING_STATUS_ACTIVE,
    },
    BookingEvent.COMPLETE: {
        BOOKING_STATUS_ACTIVE: BOOKING_STATUS_COMPLETED,
    },
    BookingEvent.CANCEL: {
        BOOKING_STATUS_PENDING: BOOKING_STATUS_CANCELLED,
        BOOKING_STATUS_ACCEPTED: BOOKING_STATUS_CANCELLED,
        BOOKING_STATUS_PAYMENT_PENDING: BOOKING_STATUS_CANCELLED,
        BOOKING_STATUS_PAID: BOOKING_STATUS_CANCELLED,
        BOOKING_STATUS_ACTIVE: BOOKING_STATUS_CANCELLED,
    },
    BookingEvent.REFUND: {
        BOOKING_STATUS_PAID: BOOKING_STATUS_PAID,
        BOOKING_STATUS_ACTIVE: BOOKING_STATUS_ACTIVE,
        BOOKING_STATUS_COMPLETED: BOOKING_STATUS_COMPLETED,
        BOOKING_STATUS_CANCELLED: BOOKING_STATUS_CANCELLED,
    },
}


def can_apply(current_status: str, event: BookingEvent) -> bool:
    """Indica si el evento está permitido desde el estado actual."""
    return current_status in TRANSITIONS[event]


def next_status(current_status: str, event: BookingEvent, booking_id: str | None = None) -> str:
    """
    Calcula el estado resultante de aplicar un evento.

    Raises:
        InvalidTransitionError: Si el evento no está permitido desde el estado actual.
    """
    allowed = TRANSITIONS[event]
    if current_status not in allowed:
        raise InvalidTransitionError(
            action=event.value, current_status=current_status, booking_id=booking_id
        )
    return allowed[current_status]
