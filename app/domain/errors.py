"""Excepciones de dominio para el sistema de reservas de autos."""

from decimal import Decimal


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de Validación ===


class ValidationError(DomainError):
    """Error de validación de datos de entrada."""

    def __init__(self, field: str, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(
            message=f"Validación fallida en '{field}': {message}",
            code=code,
        )
        self.field = field


class DriverUnavailableError(ValidationError):
    """Se pidió chofer para un auto que no ofrece el servicio."""

    def __init__(self, car_id: str):
        super().__init__(
            field="with_driver",
            message=f"el auto {car_id} no ofrece servicio de chofer",
            code="DRIVER_UNAVAILABLE",
        )
        self.car_id = car_id


class CarUnavailableError(ValidationError):
    """El auto no está disponible para la ventana solicitada."""

    def __init__(self, car_id: str, reason: str = "el auto no está disponible"):
        super().__init__(field="car_id", message=reason, code="CAR_UNAVAILABLE")
        self.car_id = car_id


# === Errores de búsqueda ===


class CarNotFoundError(DomainError):
    """El auto no existe en el catálogo."""

    def __init__(self, car_id: str):
        super().__init__(message=f"Auto no encontrado: {car_id}", code="CAR_NOT_FOUND")
        self.car_id = car_id


class BookingNotFoundError(DomainError):
    """La reserva no existe."""

    def __init__(self, booking_id: str | None = None, order_id: str | None = None):
        identifier = booking_id if booking_id else f"orden {order_id}"
        super().__init__(message=f"Reserva no encontrada: {identifier}", code="BOOKING_NOT_FOUND")
        self.booking_id = booking_id
        self.order_id = order_id


class NotificationNotFoundError(DomainError):
    """La notificación no existe o no pertenece al usuario."""

    def __init__(self, notification_id: str):
        super().__init__(
            message=f"Notificación no encontrada: {notification_id}",
            code="NOTIFICATION_NOT_FOUND",
        )
        self.notification_id = notification_id


# === Errores del ciclo de vida ===


class InvalidTransitionError(DomainError):
    """El estado actual de la reserva no permite la acción solicitada."""

    def __init__(self, action: str, current_status: str, booking_id: str | None = None):
        super().__init__(
            message=f"No se puede {action}: estado actual '{current_status}'",
            code="INVALID_TRANSITION",
        )
        self.action = action
        self.current_status = current_status
        self.booking_id = booking_id


class ConcurrentBookingConflictError(DomainError):
    """Otra operación comprometió el auto primero (carrera optimista perdida)."""

    def __init__(self, car_id: str, booking_id: str | None = None):
        super().__init__(
            message=f"Conflicto de concurrencia sobre el auto {car_id}: "
            "reintente con disponibilidad actualizada",
            code="CONCURRENT_BOOKING_CONFLICT",
        )
        self.car_id = car_id
        self.booking_id = booking_id


class AccessDeniedError(DomainError):
    """El usuario no puede operar sobre el recurso."""

    def __init__(self, message: str = "Acceso denegado"):
        super().__init__(message=message, code="ACCESS_DENIED")


# === Errores de Pago ===


class PaymentVerificationFailedError(DomainError):
    """La verificación del pago fue rechazada o no respondió a tiempo."""

    def __init__(self, reason: str, booking_id: str | None = None):
        super().__init__(
            message=f"Verificación de pago fallida: {reason}",
            code="PAYMENT_VERIFICATION_FAILED",
        )
        self.reason = reason
        self.booking_id = booking_id


class PaymentGatewayError(DomainError):
    """Error de comunicación con la pasarela de pago."""

    def __init__(self, provider: str, message: str):
        super().__init__(
            message=f"Error en pasarela {provider}: {message}",
            code="PAYMENT_GATEWAY_ERROR",
        )
        self.provider = provider


class RefundNotAllowedError(DomainError):
    """El reembolso no referencia un pago válido o excede lo cobrado."""

    def __init__(self, booking_id: str, reason: str, available: Decimal | None = None):
        super().__init__(
            message=f"Reembolso no permitido para {booking_id}: {reason}",
            code="REFUND_NOT_ALLOWED",
        )
        self.booking_id = booking_id
        self.available = available
