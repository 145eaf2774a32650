"""DTOs (Data Transfer Objects) de la capa de aplicación."""

from app.application.dtos.booking_dto import (
    BookingStatsDTO,
    CompleteRentalDTO,
    StartRentalDTO,
    SubmitBookingDTO,
)
from app.application.dtos.payment_dto import (
    WEBHOOK_IGNORED,
    WEBHOOK_PROCESSED,
    RefundDTO,
    WebhookOutcomeDTO,
)

__all__ = [
    # Booking DTOs
    "SubmitBookingDTO",
    "StartRentalDTO",
    "CompleteRentalDTO",
    "BookingStatsDTO",
    # Payment DTOs
    "WebhookOutcomeDTO",
    "RefundDTO",
    "WEBHOOK_PROCESSED",
    "WEBHOOK_IGNORED",
]
