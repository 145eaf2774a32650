import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.dependencies import Actor, get_actor, get_use_cases, require_admin
from app.api.schemas.bookings import BookingResponse
from app.api.schemas.payments import (
    CreateOrderRequest,
    CreateOrderResponse,
    PaymentDetailsResponse,
    RefundRequest,
    RefundResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookResponse,
)
from app.infrastructure.db.retry import retry_on_deadlock

logger = logging.getLogger(__name__)

router = APIRouter()

UseCases = Annotated[dict, Depends(get_use_cases)]


@router.post("/payments/orders", response_model=CreateOrderResponse)
async def create_payment_order(
    payload: CreateOrderRequest,
    use_cases: UseCases,
    actor: Actor = Depends(get_actor),
):
    booking, order = await use_cases["payments"].create_order(payload.booking_id, actor.user_id)
    return CreateOrderResponse(
        booking_id=booking.id,
        provider=order.provider,
        order_id=order.order_id,
        amount=order.amount.amount,
        currency_code=order.amount.currency_code,
        client_secret=order.client_secret,
        key_id=order.public_key,
    )


@router.post("/payments/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    payload: VerifyPaymentRequest,
    use_cases: UseCases,
    actor: Actor = Depends(get_actor),
):
    # Solo el dueño de la reserva puede verificar su pago
    await use_cases["queries"].get_booking(payload.booking_id, user_id=actor.user_id, role=actor.role)
    booking = await retry_on_deadlock(
        lambda: use_cases["payments"].verify_payment(
            booking_id=payload.booking_id,
            order_id=payload.order_id,
            transaction_id=payload.transaction_id,
            signature=payload.signature,
        )
    )
    return VerifyPaymentResponse(success=True, booking=BookingResponse.model_validate(booking))


@router.post("/payments/refunds", response_model=RefundResponse)
async def refund_payment(
    payload: RefundRequest,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    result = await use_cases["payments"].refund(payload.booking_id, payload.amount)
    logger.info(
        "Refund requested",
        extra={"booking_id": payload.booking_id, "admin_id": admin.user_id, "amount": str(payload.amount)},
    )
    return RefundResponse.model_validate(result)


@router.get("/payments/{transaction_id}", response_model=PaymentDetailsResponse)
async def get_payment(
    transaction_id: str,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    details = await use_cases["payments"].fetch_payment(transaction_id)
    return PaymentDetailsResponse(
        provider=details.provider,
        transaction_id=details.transaction_id,
        status=details.status,
        amount=details.amount.amount if details.amount else None,
        currency_code=details.amount.currency_code if details.amount else None,
        order_id=details.order_id,
        method=details.method,
    )


@router.post("/webhooks/payments", response_model=WebhookResponse)
async def payment_webhook(request: Request, use_cases: UseCases):
    raw_body = await request.body()
    headers = {key.lower(): value for key, value in request.headers.items()}
    outcome = await retry_on_deadlock(lambda: use_cases["payments"].handle_webhook(raw_body, headers))
    return WebhookResponse.model_validate(outcome)
