import asyncio
import hashlib
import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

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
from app.domain.constants import PAYMENT_PROVIDER_RAZORPAY
from app.domain.errors import PaymentGatewayError
from app.domain.value_objects.money import Money
from app.infrastructure.circuit_breaker import CircuitBreakerError, payment_breaker

logger = logging.getLogger(__name__)

SUCCEEDED_EVENTS = frozenset({"payment.authorized", "payment.captured", "order.paid"})
FAILED_EVENTS = frozenset({"payment.failed"})


def _sign(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    """
    Razorpay adapter over its REST API (orders, refunds) with HMAC-SHA256 verification.

    - Checkout callback signature: HMAC(key_secret, "order_id|payment_id").
    - Webhook signature: HMAC(webhook_secret, raw body) in X-Razorpay-Signature.
    """

    provider = PAYMENT_PROVIDER_RAZORPAY
    SIGNATURE_HEADER = "x-razorpay-signature"
    EVENT_ID_HEADER = "x-razorpay-event-id"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str | None = None,
        base_url: str = "https://api.razorpay.com/v1",
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            key_id: Public key id (also returned to the checkout).
            key_secret: Secret used for Basic auth and callback signatures.
            webhook_secret: Secret configured for the webhook endpoint.
            base_url: API base URL.
            timeout_seconds: Request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._key_id = key_id
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport

    async def create_order(self, amount: Money, metadata: Mapping[str, str]) -> GatewayOrder:
        body = await self._post(
            "/orders",
            {
                "amount": amount.to_minor_units(),
                "currency": amount.currency_code,
                "receipt": f"booking_{metadata.get('booking_id', '')}",
                "notes": dict(metadata),
            },
        )
        return GatewayOrder(
            provider=self.provider,
            order_id=body["id"],
            amount=Money.from_minor_units(body["amount"], body.get("currency", amount.currency_code)),
            public_key=self._key_id,
        )

    async def verify_signature(self, order_id: str, transaction_id: str, signature: str | None) -> bool:
        if not signature:
            return False
        expected = _sign(self._key_secret, f"{order_id}|{transaction_id}".encode())
        return hmac.compare_digest(expected, signature)

    async def parse_webhook_event(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        if not self._webhook_secret:
            raise ValueError("Razorpay webhook secret is not configured")
        normalized = {key.lower(): value for key, value in headers.items()}
        signature = normalized.get(self.SIGNATURE_HEADER)
        if not signature:
            raise ValueError("Missing X-Razorpay-Signature header")
        if not hmac.compare_digest(_sign(self._webhook_secret, payload), signature):
            raise ValueError("Invalid Razorpay signature")

        try:
            body = json.loads(payload.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError("Invalid Razorpay webhook payload") from exc

        event_type = body.get("event", "")
        entity = (body.get("payload") or {}).get("payment", {}).get("entity", {})
        if event_type in SUCCEEDED_EVENTS:
            kind = EVENT_PAYMENT_SUCCEEDED
        elif event_type in FAILED_EVENTS:
            kind = EVENT_PAYMENT_FAILED
        else:
            kind = EVENT_OTHER

        notes = entity.get("notes") or {}
        booking_id = notes.get("booking_id") or notes.get("bookingId")
        amount = None
        if entity.get("amount") is not None:
            amount = Money.from_minor_units(entity["amount"], entity.get("currency", "INR"))

        return GatewayEvent(
            kind=kind,
            raw_type=event_type,
            event_id=normalized.get(self.EVENT_ID_HEADER),
            order_id=entity.get("order_id"),
            transaction_id=entity.get("id"),
            amount=amount,
            metadata={"booking_id": booking_id} if booking_id else {},
        )

    async def refund(self, transaction_id: str, amount: Money) -> RefundResult:
        body = await self._post(
            f"/payments/{transaction_id}/refund",
            {"amount": amount.to_minor_units(), "speed": "normal"},
        )
        return RefundResult(
            refund_id=body["id"],
            status=body.get("status", "pending"),
            amount=Money.from_minor_units(body["amount"], amount.currency_code).amount,
        )

    async def fetch_payment(self, transaction_id: str) -> PaymentDetails:
        body = await self._get(f"/payments/{transaction_id}")
        amount = None
        if body.get("amount") is not None:
            amount = Money.from_minor_units(body["amount"], body.get("currency", "INR"))
        return PaymentDetails(
            provider=self.provider,
            transaction_id=body.get("id", transaction_id),
            status=body.get("status", "unknown"),
            amount=amount,
            order_id=body.get("order_id"),
            method=body.get("method"),
        )

    def _request(self, method: str, path: str, payload: dict[str, Any] | None) -> dict[str, Any]:
        with httpx.Client(
            base_url=self._base_url,
            auth=(self._key_id, self._key_secret),
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            response = client.request(method, path, json=payload)
            response.raise_for_status()
            return response.json()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._send("POST", path, payload)

    async def _get(self, path: str) -> dict[str, Any]:
        return await self._send("GET", path, None)

    async def _send(self, method: str, path: str, payload: dict[str, Any] | None) -> dict[str, Any]:
        # httpx sync client inside a worker thread so the breaker can track failures
        try:
            return await asyncio.to_thread(payment_breaker.call, self._request, method, path, payload)
        except CircuitBreakerError as exc:
            logger.error(
                "Payment circuit breaker is open - service unavailable",
                extra={"provider": self.provider, "path": path},
            )
            raise PaymentGatewayError(self.provider, "servicio no disponible") from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Razorpay API error",
                extra={"path": path, "status_code": exc.response.status_code},
            )
            raise PaymentGatewayError(self.provider, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Razorpay request failed", exc_info=exc, extra={"path": path})
            raise PaymentGatewayError(self.provider, str(exc)) from exc
