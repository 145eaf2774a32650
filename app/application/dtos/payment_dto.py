"""DTOs para pagos."""

from dataclasses import dataclass
from decimal import Decimal

WEBHOOK_PROCESSED = "processed"
WEBHOOK_IGNORED = "ignored"


@dataclass
class WebhookOutcomeDTO:
    """Resultado de procesar un webhook de la pasarela."""

    status: str
    event_type: str
    booking_id: str | None = None
    booking_status: str | None = None
    reason: str | None = None


@dataclass
class RefundDTO:
    booking_id: str
    refund_id: str
    status: str
    amount: Decimal
    refunded_total: Decimal
    payment_status: str
