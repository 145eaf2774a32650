from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, condecimal

from app.api.schemas.bookings import BookingResponse

Money = condecimal(max_digits=12, decimal_places=2)


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    booking_id: str


class CreateOrderResponse(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: lambda v: format(v, ".2f")})

    booking_id: str
    provider: str
    order_id: str
    amount: Money
    currency_code: str
    client_secret: str | None = None
    key_id: str | None = None


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    booking_id: str
    order_id: str
    transaction_id: str
    signature: str | None = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    booking: BookingResponse


class RefundRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    booking_id: str
    amount: Money = Field(gt=0)


class RefundResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={Decimal: lambda v: format(v, ".2f")},
    )

    booking_id: str
    refund_id: str
    status: str
    amount: Money
    refunded_total: Money
    payment_status: str


class WebhookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: str
    event_type: str
    booking_id: str | None = None
    booking_status: str | None = None
    reason: str | None = None


class PaymentDetailsResponse(BaseModel):
    model_config = ConfigDict(json_encoders={Decimal: lambda v: format(v, ".2f")})

    provider: str
    transaction_id: str
    status: str
    amount: Money | None = None
    currency_code: str | None = None
    order_id: str | None = None
    method: str | None = None
