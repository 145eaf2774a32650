import logging

from app.application.interfaces.payment_gateway import PaymentGateway
from app.config import Settings
from app.domain.constants import (
    PAYMENT_PROVIDER_RAZORPAY,
    PAYMENT_PROVIDER_STRIPE,
    PAYMENT_PROVIDER_STUB,
)
from app.infrastructure.gateways.razorpay_gateway import RazorpayGateway
from app.infrastructure.gateways.stripe_gateway import StripeGateway
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway

logger = logging.getLogger(__name__)


class PaymentGatewayConfigError(RuntimeError):
    """La pasarela configurada no tiene las credenciales que necesita."""


def build_payment_gateway(settings: Settings) -> PaymentGateway:
    """
    Construye la pasarela configurada en `PAYMENT_PROVIDER`.

    La pasarela simulada solo se usa si se pide explícitamente; una pasarela
    real sin credenciales es un error de configuración, no un motivo para
    aceptar pagos sin verificar.
    """
    provider = settings.payment_provider.lower()

    if provider == PAYMENT_PROVIDER_RAZORPAY:
        if not (settings.razorpay_key_id and settings.razorpay_key_secret):
            raise PaymentGatewayConfigError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET are required")
        return RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            webhook_secret=settings.razorpay_webhook_secret,
            base_url=settings.razorpay_base_url,
            timeout_seconds=settings.payment_gateway_timeout_seconds,
        )
    if provider == PAYMENT_PROVIDER_STRIPE:
        if not settings.stripe_api_key:
            raise PaymentGatewayConfigError("STRIPE_SECRET_KEY is required")
        return StripeGateway(
            api_key=settings.stripe_api_key,
            webhook_secret=settings.stripe_webhook_secret,
        )
    if provider == PAYMENT_PROVIDER_STUB:
        logger.warning(
            "Using stub payment gateway, payments are not verified by a real provider",
            extra={"payment_provider": provider},
        )
        return StubPaymentGateway()

    raise PaymentGatewayConfigError(f"Unknown payment provider: {settings.payment_provider}")
