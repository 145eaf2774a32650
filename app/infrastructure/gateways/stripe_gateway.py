import asyncio
import logging
from collections.abc import Mapping
from decimal import Decimal

import stripe

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
from app.domain.constants import PAYMENT_PROVIDER_STRIPE
from app.domain.errors import PaymentGatewayError
from app.domain.value_objects.money import Money
from app.infrastructure.circuit_breaker import CircuitBreakerError, payment_breaker

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    """
    Stripe adapter: a PaymentIntent is the order, its latest charge is the transaction.

    The Stripe SDK has no async client, so calls run in a worker thread
    wrapped by the payment circuit breaker.
    """

    provider = PAYMENT_PROVIDER_STRIPE

    def __init__(self, api_key: str | None, webhook_secret: str | None = None) -> None:
        stripe.api_key = api_key
        stripe.max_network_retries = 2  # Retry failed requests up to 2 times
        self._webhook_secret = webhook_secret

    async def create_order(self, amount: Money, metadata: Mapping[str, str]) -> GatewayOrder:
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=amount.to_minor_units(),
            currency=amount.currency_code.lower(),
            metadata=dict(metadata),
            automatic_payment_methods={"enabled": True},
        )
        return GatewayOrder(
            provider=self.provider,
            order_id=intent.id,
            amount=amount,
            client_secret=intent.client_secret,
        )

    async def verify_signature(self, order_id: str, transaction_id: str, signature: str | None) -> bool:
        # Stripe has no client-side signature: the intent is fetched and checked instead
        intent = await self._call(stripe.PaymentIntent.retrieve, order_id)
        if intent.status != "succeeded":
            logger.warning(
                "Stripe payment intent not succeeded",
                extra={"payment_intent_id": order_id, "intent_status": intent.status},
            )
            return False
        return transaction_id in (intent.latest_charge, intent.id)

    async def parse_webhook_event(self, payload: bytes, headers: Mapping[str, str]) -> GatewayEvent:
        if not self._webhook_secret:
            raise ValueError("Stripe webhook secret is not configured")
        normalized = {key.lower(): value for key, value in headers.items()}
        signature_header = normalized.get("stripe-signature")
        if not signature_header:
            raise ValueError("Missing Stripe-Signature header")
        try:
            stripe_event = stripe.Webhook.construct_event(
                payload=payload.decode(),
                sig_header=signature_header,
                secret=self._webhook_secret,
            )
        except stripe.SignatureVerificationError as exc:
            raise ValueError("Invalid Stripe signature") from exc
        except ValueError as exc:
            raise ValueError("Invalid Stripe webhook payload") from exc

        event = stripe_event.to_dict() if hasattr(stripe_event, "to_dict") else dict(stripe_event)

        event_type = event.get("type", "")
        data_obj = (event.get("data") or {}).get("object") or {}
        if event_type == "payment_intent.succeeded":
            kind = EVENT_PAYMENT_SUCCEEDED
            transaction_id = data_obj.get("latest_charge") or data_obj.get("id")
        elif event_type == "payment_intent.payment_failed":
            kind = EVENT_PAYMENT_FAILED
            transaction_id = (data_obj.get("last_payment_error") or {}).get("charge")
        else:
            kind = EVENT_OTHER
            transaction_id = None

        amount = None
        minor = data_obj.get("amount_received") or data_obj.get("amount")
        if minor is not None and data_obj.get("currency"):
            amount = Money.from_minor_units(minor, data_obj["currency"])

        metadata = data_obj.get("metadata") or {}
        return GatewayEvent(
            kind=kind,
            raw_type=event_type,
            event_id=event.get("id"),
            order_id=data_obj.get("id") if event_type.startswith("payment_intent.") else None,
            transaction_id=transaction_id,
            amount=amount,
            metadata={"booking_id": metadata["booking_id"]} if metadata.get("booking_id") else {},
        )

    async def refund(self, transaction_id: str, amount: Money) -> RefundResult:
        target = {"payment_intent": transaction_id} if transaction_id.startswith("pi_") else {"charge": transaction_id}
        refund = await self._call(stripe.Refund.create, amount=amount.to_minor_units(), **target)
        return RefundResult(
            refund_id=refund.id,
            status=refund.status,
            amount=Decimal(refund.amount) / 100,
        )

    async def fetch_payment(self, transaction_id: str) -> PaymentDetails:
        if transaction_id.startswith("pi_"):
            intent = await self._call(stripe.PaymentIntent.retrieve, transaction_id)
            return PaymentDetails(
                provider=self.provider,
                transaction_id=intent.id,
                status=intent.status,
                amount=Money.from_minor_units(intent.amount, intent.currency),
                order_id=intent.id,
                method=(intent.payment_method_types or [None])[0],
            )
        charge = await self._call(stripe.Charge.retrieve, transaction_id)
        details = charge.payment_method_details
        return PaymentDetails(
            provider=self.provider,
            transaction_id=charge.id,
            status=charge.status,
            amount=Money.from_minor_units(charge.amount, charge.currency),
            order_id=charge.payment_intent,
            method=details.type if details else None,
        )

    async def _call(self, func, *args, **kwargs):
        try:
            return await asyncio.to_thread(payment_breaker.call, func, *args, **kwargs)
        except CircuitBreakerError as exc:
            logger.error(
                "Payment circuit breaker is open - service unavailable",
                extra={"provider": self.provider},
            )
            raise PaymentGatewayError(self.provider, "servicio no disponible") from exc
        except stripe.StripeError as exc:
            logger.error("Stripe API error", exc_info=exc)
            raise PaymentGatewayError(self.provider, str(exc.user_message or exc)) from exc
