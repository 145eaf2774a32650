"""Pasarela de pago simulada para desarrollo local y tests."""

import hashlib
import hmac
import json
from collections.abc import Mapping
from decimal import Decimal
from uuid import uuid4

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
from app.domain.errors import PaymentGatewayError
from app.domain.value_objects.money import Money


class StubPaymentGateway(PaymentGateway):
    """
    Firma como Razorpay (HMAC-SHA256 de `order_id|payment_id`) con un secreto local.

    Los webhooks se aceptan en el formato simplificado
    `{"event": "...", "order_id": "...", "payment_id": "...", "booking_id": "..."}`
    firmados con el mismo secreto en el header `X-Stub-Signature`.
    """

    provider = "stub"
    SIGNATURE_HEADER = "x-stub-signature"

    def __init__(self, secret: str = "stub_secret") -> None:
        self._secret = secret
        self.orders: dict[str, GatewayOrder] = {}
        self.refunds: list[RefundResult] = []
        self.payments: dict[str, PaymentDetails] = {}

    def sign(self, message: str) -> str:
        return hmac.new(self._secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    async def create_order(self, amount: Money, metadata: Mapping[str, str]) -> GatewayOrder:
        order = GatewayOrder(
            provider=self.provider,
            order_id=f"order_{uuid4().hex[:14]}",
            amount=amount,
        )
        self.orders[order.order_id] = order
        return order

    async def verify_signature(self, order_id: str, transaction_id: str, signature: str | None) -> bool:
        if not signature or not hmac.compare_digest(self.sign(f"{order_id}|{transaction_id}"), signature):
            return False
        order = self.orders.get(order_id)
        self.payments[transaction_id] = PaymentDetails(
            provider=self.provider,
            transaction_id=transaction_id,
            status="captured",
            amount=order.amount if order else None,
            order_id=order_id,
        )
        return True

    async def parse_webhook_event(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        signature = {k.lower(): v for k, v in headers.items()}.get(self.SIGNATURE_HEADER)
        if not signature or not hmac.compare_digest(self.sign(payload.decode()), signature):
            raise ValueError("Invalid webhook signature")
        try:
            body = json.loads(payload.decode())
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid webhook payload") from exc

        kinds = {"payment.captured": EVENT_PAYMENT_SUCCEEDED, "payment.failed": EVENT_PAYMENT_FAILED}
        metadata = {"booking_id": body["booking_id"]} if body.get("booking_id") else {}
        return GatewayEvent(
            kind=kinds.get(body.get("event"), EVENT_OTHER),
            raw_type=body.get("event", ""),
            order_id=body.get("order_id"),
            transaction_id=body.get("payment_id"),
            metadata=metadata,
        )

    async def refund(self, transaction_id: str, amount: Money) -> RefundResult:
        result = RefundResult(
            refund_id=f"rfnd_{uuid4().hex[:14]}",
            status="processed",
            amount=Decimal(amount.amount),
        )
        self.refunds.append(result)
        return result

    async def fetch_payment(self, transaction_id: str) -> PaymentDetails:
        try:
            return self.payments[transaction_id]
        except KeyError:
            raise PaymentGatewayError(self.provider, "pago no encontrado") from None
