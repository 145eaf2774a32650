import asyncio
import logging
from collections.abc import Mapping
from decimal import Decimal

from app.application.dtos.payment_dto import (
    WEBHOOK_IGNORED,
    WEBHOOK_PROCESSED,
    RefundDTO,
    WebhookOutcomeDTO,
)
from app.application.interfaces.booking_store import BookingStore
from app.application.interfaces.payment_gateway import (
    EVENT_PAYMENT_FAILED,
    EVENT_PAYMENT_SUCCEEDED,
    GatewayEvent,
    GatewayOrder,
    PaymentDetails,
    PaymentGateway,
)
from app.application.use_cases.booking_lifecycle import BookingLifecycle
from app.domain.constants import (
    BOOKING_STATUS_PAYMENT_PENDING,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_REFUNDED,
)
from app.domain.entities.booking import Booking
from app.domain.errors import (
    AccessDeniedError,
    BookingNotFoundError,
    InvalidTransitionError,
    PaymentGatewayError,
    PaymentVerificationFailedError,
    RefundNotAllowedError,
    ValidationError,
)
from app.domain.state_machine import BookingEvent
from app.domain.value_objects.money import Money


class PaymentReconciliation:
    """
    Traduce los eventos de la pasarela a transiciones del ciclo de vida.

    Nunca escribe la reserva directamente: toda mutación pasa por
    BookingLifecycle. Una verificación rechazada o que no responde a
    tiempo falla cerrada y no toca la reserva.
    """

    def __init__(
        self,
        booking_store: BookingStore,
        lifecycle: BookingLifecycle,
        gateway: PaymentGateway,
        currency_code: str = "INR",
        timeout_seconds: float = 10.0,
        enforce_refund_amount_bound: bool = True,
    ) -> None:
        self._booking_store = booking_store
        self._lifecycle = lifecycle
        self._gateway = gateway
        self._currency_code = currency_code
        self._timeout_seconds = timeout_seconds
        self._enforce_refund_amount_bound = enforce_refund_amount_bound
        self._logger = logging.getLogger(__name__)

    async def create_order(self, booking_id: str, customer_id: str) -> tuple[Booking, GatewayOrder]:
        booking = await self._load(booking_id)
        if booking.customer_id != customer_id:
            raise AccessDeniedError()
        if booking.status != BOOKING_STATUS_PAYMENT_PENDING:
            raise InvalidTransitionError(
                action=BookingEvent.ATTACH_ORDER.value,
                current_status=booking.status,
                booking_id=booking.id,
            )

        order = await self._gateway.create_order(
            amount=Money(booking.total_price, self._currency_code),
            metadata={"booking_id": booking.id, "customer_id": customer_id},
        )
        updated = await self._lifecycle.attach_payment_order(
            booking.id, provider=self._gateway.provider, order_id=order.order_id
        )
        self._logger.info(
            "Payment order created",
            extra={
                "booking_id": booking.id,
                "provider": order.provider,
                "order_id": order.order_id,
                "amount": str(order.amount),
            },
        )
        return updated, order

    async def verify_payment(
        self,
        booking_id: str,
        order_id: str,
        transaction_id: str,
        signature: str | None = None,
    ) -> Booking:
        booking = await self._load(booking_id)
        if booking.is_paid_with(transaction_id):
            return booking
        await self._ensure_order_belongs_to(booking, order_id)

        try:
            verified = await asyncio.wait_for(
                self._gateway.verify_signature(order_id, transaction_id, signature),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._logger.error(
                "Payment verification timed out",
                extra={"booking_id": booking_id, "order_id": order_id},
            )
            raise PaymentVerificationFailedError("timeout", booking_id=booking_id) from exc
        except PaymentGatewayError as exc:
            self._logger.error(
                "Payment verification unavailable",
                extra={"booking_id": booking_id, "order_id": order_id, "error": exc.message},
            )
            raise PaymentVerificationFailedError("pasarela no disponible", booking_id=booking_id) from exc
        if not verified:
            self._logger.warning(
                "Payment verification rejected",
                extra={"booking_id": booking_id, "order_id": order_id},
            )
            raise PaymentVerificationFailedError("firma inválida", booking_id=booking_id)

        return await self._lifecycle.confirm_payment(
            booking_id, transaction_id=transaction_id, order_id=order_id
        )

    async def handle_webhook(self, raw_body: bytes, headers: Mapping[str, str]) -> WebhookOutcomeDTO:
        if not raw_body:
            raise ValidationError(field="body", message="webhook vacío")
        try:
            event = await self._gateway.parse_webhook_event(raw_body, headers)
        except ValueError as exc:
            raise ValidationError(field="signature", message=str(exc)) from exc

        if event.kind not in (EVENT_PAYMENT_SUCCEEDED, EVENT_PAYMENT_FAILED):
            self._logger.info("Unhandled webhook event", extra={"event_type": event.raw_type})
            return WebhookOutcomeDTO(status=WEBHOOK_IGNORED, event_type=event.raw_type, reason="unhandled")

        booking = await self._correlate(event)
        if booking is None:
            self._logger.warning(
                "Webhook for unknown booking",
                extra={
                    "event_type": event.raw_type,
                    "event_id": event.event_id,
                    "order_id": event.order_id,
                },
            )
            return WebhookOutcomeDTO(
                status=WEBHOOK_IGNORED, event_type=event.raw_type, reason="booking_not_found"
            )
        if booking.payment_order_id and event.order_id and booking.payment_order_id != event.order_id:
            self._logger.warning(
                "Webhook order does not match booking",
                extra={
                    "booking_id": booking.id,
                    "order_id": event.order_id,
                    "stored_order_id": booking.payment_order_id,
                },
            )
            return WebhookOutcomeDTO(
                status=WEBHOOK_IGNORED,
                event_type=event.raw_type,
                booking_id=booking.id,
                booking_status=booking.status,
                reason="order_mismatch",
            )

        try:
            if event.kind == EVENT_PAYMENT_SUCCEEDED:
                amount = event.amount.amount if event.amount is not None else None
                updated = await self._lifecycle.confirm_payment(
                    booking.id,
                    transaction_id=event.transaction_id or event.order_id or "",
                    order_id=event.order_id,
                    amount=amount,
                )
            else:
                updated = await self._lifecycle.record_payment_failure(
                    booking.id, transaction_id=event.transaction_id
                )
        except InvalidTransitionError as exc:
            # Evento tardío o fuera de orden: la reserva ya avanzó
            self._logger.warning(
                "Webhook event does not apply to current booking state",
                extra={
                    "booking_id": booking.id,
                    "event_type": event.raw_type,
                    "current_status": exc.current_status,
                },
            )
            return WebhookOutcomeDTO(
                status=WEBHOOK_IGNORED,
                event_type=event.raw_type,
                booking_id=booking.id,
                booking_status=exc.current_status,
                reason="invalid_transition",
            )

        self._logger.info(
            "Webhook processed",
            extra={
                "booking_id": updated.id,
                "event_type": event.raw_type,
                "status": updated.status,
                "payment_status": updated.payment_status,
            },
        )
        return WebhookOutcomeDTO(
            status=WEBHOOK_PROCESSED,
            event_type=event.raw_type,
            booking_id=updated.id,
            booking_status=updated.status,
        )

    async def fetch_payment(self, transaction_id: str) -> PaymentDetails:
        """Consulta en la pasarela el estado de un pago por su id de transacción."""
        try:
            details = await asyncio.wait_for(
                self._gateway.fetch_payment(transaction_id),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._logger.error("Payment lookup timed out", extra={"transaction_id": transaction_id})
            raise PaymentGatewayError(self._gateway.provider, "timeout") from exc
        self._logger.info(
            "Payment fetched",
            extra={"transaction_id": transaction_id, "payment_status": details.status},
        )
        return details

    async def refund(self, booking_id: str, amount: Decimal) -> RefundDTO:
        if amount <= 0:
            raise ValidationError(field="amount", message="debe ser mayor a cero")

        booking = await self._load(booking_id)
        if booking.payment_status not in (PAYMENT_STATUS_COMPLETED, PAYMENT_STATUS_REFUNDED):
            raise RefundNotAllowedError(booking_id, "la reserva no tiene un pago completado")
        if not booking.payment_transaction_id:
            raise RefundNotAllowedError(booking_id, "la reserva no tiene transacción de pago")
        if self._enforce_refund_amount_bound and amount > booking.refundable_amount:
            raise RefundNotAllowedError(
                booking_id,
                f"el monto excede lo reembolsable ({booking.refundable_amount})",
                available=booking.refundable_amount,
            )

        # El monto queda reservado antes de llamar a la pasarela
        updated = await self._lifecycle.record_refund(
            booking_id, amount, enforce_bound=self._enforce_refund_amount_bound
        )
        try:
            result = await self._gateway.refund(
                booking.payment_transaction_id, Money(amount, self._currency_code)
            )
        except Exception:
            await self._lifecycle.release_refund(booking_id, amount)
            raise
        if result.amount < amount:
            updated = await self._lifecycle.release_refund(booking_id, amount - result.amount)

        await self._lifecycle.notify_refund(updated, result.amount)
        self._logger.info(
            "Refund recorded",
            extra={
                "booking_id": booking_id,
                "refund_id": result.refund_id,
                "amount": str(result.amount),
                "refunded_total": str(updated.refunded_amount),
            },
        )
        return RefundDTO(
            booking_id=booking_id,
            refund_id=result.refund_id,
            status=result.status,
            amount=result.amount,
            refunded_total=updated.refunded_amount,
            payment_status=updated.payment_status,
        )

    async def _ensure_order_belongs_to(self, booking: Booking, order_id: str) -> None:
        """
        La orden debe ser la creada para esta reserva y no estar asociada a otra.

        Una firma válida solo prueba que la pasarela cobró esa orden, no a
        qué reserva corresponde.
        """
        if booking.payment_order_id is None or booking.payment_order_id != order_id:
            self._logger.warning(
                "Payment order does not match booking",
                extra={
                    "booking_id": booking.id,
                    "order_id": order_id,
                    "stored_order_id": booking.payment_order_id,
                },
            )
            raise PaymentVerificationFailedError(
                "la orden no corresponde a la reserva", booking_id=booking.id
            )
        owner = await self._booking_store.find_by_order_id(order_id)
        if owner is not None and owner.id != booking.id:
            self._logger.warning(
                "Payment order already correlated with another booking",
                extra={"booking_id": booking.id, "order_id": order_id, "owner_id": owner.id},
            )
            raise PaymentVerificationFailedError(
                "la orden pertenece a otra reserva", booking_id=booking.id
            )

    async def _correlate(self, event: GatewayEvent) -> Booking | None:
        if event.order_id:
            booking = await self._booking_store.find_by_order_id(event.order_id)
            if booking is not None:
                return booking
        booking_id = event.metadata.get("booking_id")
        if booking_id:
            return await self._booking_store.get_by_id(booking_id)
        return None

    async def _load(self, booking_id: str) -> Booking:
        booking = await self._booking_store.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id=booking_id)
        return booking
