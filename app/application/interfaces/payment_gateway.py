"""Interface PaymentGateway - Puerto hacia la pasarela de pago (Razorpay o Stripe)."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from app.domain.value_objects.money import Money

EVENT_PAYMENT_SUCCEEDED = "payment_succeeded"
EVENT_PAYMENT_FAILED = "payment_failed"
EVENT_OTHER = "other"


@dataclass
class GatewayOrder:
    """Orden creada en la pasarela; `order_id` es el correlation id de la reserva."""

    provider: str
    order_id: str
    amount: Money
    client_secret: str | None = None
    public_key: str | None = None


@dataclass
class GatewayEvent:
    """
    Evento de webhook ya autenticado y normalizado.

    Attributes:
        kind: EVENT_PAYMENT_SUCCEEDED, EVENT_PAYMENT_FAILED o EVENT_OTHER.
        raw_type: Tipo original del evento en la pasarela.
        metadata: Metadata de la orden (incluye `booking_id` si se envió al crearla).
    """

    kind: str
    raw_type: str
    event_id: str | None = None
    order_id: str | None = None
    transaction_id: str | None = None
    amount: Money | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class RefundResult:
    refund_id: str
    status: str
    amount: Decimal


@dataclass
class PaymentDetails:
    """Estado de un pago tal como lo reporta la pasarela."""

    provider: str
    transaction_id: str
    status: str
    amount: Money | None = None
    order_id: str | None = None
    method: str | None = None


class PaymentGateway(ABC):
    """
    Puerto hacia la pasarela de pago.

    Las implementaciones traducen el protocolo de cada proveedor; el núcleo
    solo conoce órdenes, verificaciones, eventos y reembolsos.
    """

    provider: str

    @abstractmethod
    async def create_order(self, amount: Money, metadata: Mapping[str, str]) -> GatewayOrder:
        """
        Crea una orden de cobro.

        Raises:
            PaymentGatewayError: Si la pasarela falla o el circuito está abierto.
        """
        raise NotImplementedError

    @abstractmethod
    async def verify_signature(self, order_id: str, transaction_id: str, signature: str | None) -> bool:
        """
        Verifica que el pago reportado por el cliente es auténtico y exitoso.

        Returns:
            True si el pago es válido; False si la firma o el estado no coinciden.
        """
        raise NotImplementedError

    @abstractmethod
    async def parse_webhook_event(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        """
        Autentica y normaliza un webhook.

        Raises:
            ValueError: Si la firma es inválida o el payload está malformado.
        """
        raise NotImplementedError

    @abstractmethod
    async def refund(self, transaction_id: str, amount: Money) -> RefundResult:
        raise NotImplementedError

    @abstractmethod
    async def fetch_payment(self, transaction_id: str) -> PaymentDetails:
        """
        Consulta un pago en la pasarela (solo lectura).

        Raises:
            PaymentGatewayError: Si el pago no existe o la pasarela falla.
        """
        raise NotImplementedError
