import json
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import stripe

from app.application.interfaces.payment_gateway import EVENT_PAYMENT_FAILED, EVENT_PAYMENT_SUCCEEDED
from app.domain.errors import PaymentGatewayError
from app.domain.value_objects.money import Money
from app.infrastructure.circuit_breaker import payment_breaker
from app.infrastructure.gateways.stripe_gateway import StripeGateway


class TestStripeGateway(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        payment_breaker.close()
        self.gateway = StripeGateway(api_key="sk_test_123", webhook_secret="whsec_test")

    def tearDown(self):
        payment_breaker.close()

    @patch("stripe.PaymentIntent.create")
    async def test_create_order_returns_client_secret(self, mock_create):
        mock_create.return_value = SimpleNamespace(id="pi_123", client_secret="pi_123_secret")

        order = await self.gateway.create_order(Money(Decimal("2000"), "INR"), {"booking_id": "bk-1"})

        self.assertEqual(order.order_id, "pi_123")
        self.assertEqual(order.client_secret, "pi_123_secret")
        kwargs = mock_create.call_args.kwargs
        self.assertEqual(kwargs["amount"], 200000)
        self.assertEqual(kwargs["currency"], "inr")
        self.assertEqual(kwargs["metadata"], {"booking_id": "bk-1"})

    @patch("stripe.PaymentIntent.create")
    async def test_stripe_error_becomes_gateway_error(self, mock_create):
        mock_create.side_effect = stripe.APIConnectionError("network down")

        with self.assertRaises(PaymentGatewayError):
            await self.gateway.create_order(Money(Decimal("2000"), "INR"), {"booking_id": "bk-1"})

    @patch("stripe.PaymentIntent.retrieve")
    async def test_verify_checks_intent_status_and_charge(self, mock_retrieve):
        mock_retrieve.return_value = SimpleNamespace(id="pi_123", status="succeeded", latest_charge="ch_1")

        self.assertTrue(await self.gateway.verify_signature("pi_123", "ch_1", None))
        self.assertTrue(await self.gateway.verify_signature("pi_123", "pi_123", None))
        self.assertFalse(await self.gateway.verify_signature("pi_123", "ch_other", None))

        mock_retrieve.return_value = SimpleNamespace(id="pi_123", status="requires_payment_method", latest_charge=None)
        self.assertFalse(await self.gateway.verify_signature("pi_123", "ch_1", None))

    @patch("stripe.Webhook.construct_event")
    async def test_parse_succeeded_webhook(self, mock_construct):
        body = {
            "id": "evt_1",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": "pi_123",
                    "amount_received": 200000,
                    "currency": "inr",
                    "latest_charge": "ch_1",
                    "metadata": {"booking_id": "bk-1"},
                }
            },
        }
        payload = json.dumps(body).encode()
        mock_construct.return_value = stripe.Event.construct_from(body, "sk_test_123")

        event = await self.gateway.parse_webhook_event(payload, {"Stripe-Signature": "t=1,v1=abc"})

        self.assertEqual(event.kind, EVENT_PAYMENT_SUCCEEDED)
        self.assertEqual(event.order_id, "pi_123")
        self.assertEqual(event.transaction_id, "ch_1")
        self.assertEqual(event.amount.amount, Decimal("2000.00"))
        self.assertEqual(event.metadata, {"booking_id": "bk-1"})
        mock_construct.assert_called_once()

    @patch("stripe.Webhook.construct_event")
    async def test_parse_failed_webhook(self, mock_construct):
        body = {
            "type": "payment_intent.payment_failed",
            "data": {"object": {"id": "pi_123", "last_payment_error": {"charge": "ch_0"}}},
        }
        payload = json.dumps(body).encode()
        mock_construct.return_value = stripe.Event.construct_from(body, "sk_test_123")

        event = await self.gateway.parse_webhook_event(payload, {"stripe-signature": "t=1,v1=abc"})

        self.assertEqual(event.kind, EVENT_PAYMENT_FAILED)
        self.assertEqual(event.transaction_id, "ch_0")

    @patch("stripe.Webhook.construct_event")
    async def test_reads_the_verified_event_object(self, mock_construct):
        mock_construct.return_value = stripe.Event.construct_from(
            {
                "id": "evt_2",
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_456", "latest_charge": "ch_9"}},
            },
            "sk_test_123",
        )

        event = await self.gateway.parse_webhook_event(
            b'{"type": "charge.updated"}', {"Stripe-Signature": "t=1,v1=abc"}
        )

        self.assertEqual(event.kind, EVENT_PAYMENT_SUCCEEDED)
        self.assertEqual(event.event_id, "evt_2")
        self.assertEqual(event.order_id, "pi_456")
        self.assertEqual(event.transaction_id, "ch_9")

    @patch("stripe.Webhook.construct_event")
    async def test_malformed_payload_is_rejected(self, mock_construct):
        mock_construct.side_effect = ValueError("Expecting value")

        with self.assertRaises(ValueError):
            await self.gateway.parse_webhook_event(b"not json", {"Stripe-Signature": "t=1,v1=abc"})

    @patch("stripe.Webhook.construct_event")
    async def test_invalid_signature_is_rejected(self, mock_construct):
        mock_construct.side_effect = stripe.SignatureVerificationError("bad", "t=1,v1=abc")

        with self.assertRaises(ValueError):
            await self.gateway.parse_webhook_event(b"{}", {"Stripe-Signature": "t=1,v1=abc"})
        with self.assertRaises(ValueError):
            await self.gateway.parse_webhook_event(b"{}", {})

    @patch("stripe.Refund.create")
    async def test_refund_targets_charge_or_intent(self, mock_refund):
        mock_refund.return_value = SimpleNamespace(id="re_1", status="succeeded", amount=50000)

        result = await self.gateway.refund("ch_1", Money(Decimal("500"), "INR"))
        await self.gateway.refund("pi_123", Money(Decimal("500"), "INR"))

        self.assertEqual(result.refund_id, "re_1")
        self.assertEqual(result.amount, Decimal("500"))
        self.assertEqual(mock_refund.call_args_list[0].kwargs, {"amount": 50000, "charge": "ch_1"})
        self.assertEqual(mock_refund.call_args_list[1].kwargs, {"amount": 50000, "payment_intent": "pi_123"})

    @patch("stripe.PaymentIntent.retrieve")
    async def test_fetch_payment_by_intent(self, mock_retrieve):
        mock_retrieve.return_value = SimpleNamespace(
            id="pi_123", status="succeeded", amount=200000, currency="inr", payment_method_types=["card"]
        )

        details = await self.gateway.fetch_payment("pi_123")

        self.assertEqual(details.status, "succeeded")
        self.assertEqual(details.amount, Money(Decimal("2000"), "INR"))
        self.assertEqual(details.order_id, "pi_123")
        self.assertEqual(details.method, "card")

    @patch("stripe.Charge.retrieve")
    async def test_fetch_payment_by_charge(self, mock_retrieve):
        mock_retrieve.return_value = SimpleNamespace(
            id="ch_1",
            status="succeeded",
            amount=50000,
            currency="inr",
            payment_intent="pi_123",
            payment_method_details=SimpleNamespace(type="upi"),
        )

        details = await self.gateway.fetch_payment("ch_1")

        mock_retrieve.assert_called_once_with("ch_1")
        self.assertEqual(details.transaction_id, "ch_1")
        self.assertEqual(details.order_id, "pi_123")
        self.assertEqual(details.amount.amount, Decimal("500.00"))
        self.assertEqual(details.method, "upi")
