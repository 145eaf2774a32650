"""Entidad Booking - Agregado raíz del dominio."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from app.domain.constants import (
    BOOKING_STATUS_ACTIVE,
    BOOKING_STATUS_PAID,
    BOOKING_STATUS_PENDING,
    DEPOSIT_METHOD_CASH,
    DEPOSIT_STATUS_PENDING,
    DEPOSIT_STATUS_RECEIVED,
    DEPOSIT_STATUS_REFUNDED,
    PAID_OR_LATER_STATUSES,
    PAYMENT_STATUS_COMPLETED,
    PAYMENT_STATUS_FAILED,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_REFUNDED,
)
from app.domain.errors import RefundNotAllowedError
from app.domain.state_machine import BookingEvent, next_status
from app.domain.value_objects.rental_window import RentalWindow


@dataclass
class ReferenceContact:
    """Contacto de referencia que el cliente entrega para verificación."""

    name: str
    mobile: str


@dataclass
class CustomerVerification:
    """Datos de identidad y contacto entregados por el cliente al reservar."""

    full_name: str
    guardian_name: str
    guardian_relation: str
    residential_address: str
    email: str
    mobile: str
    occupation: str
    reference_1: ReferenceContact
    reference_2: ReferenceContact
    driving_license_number: str
    license_expiry: date


@dataclass
class DocumentHandles:
    """
    Referencias opacas a los documentos subidos.

    El núcleo nunca abre ni valida el contenido, solo verifica que existan.
    """

    driving_license: str | None = None
    identity_card: str | None = None
    live_photo: str | None = None

    def missing(self) -> list[str]:
        """Retorna los nombres de los documentos que faltan."""
        return [
            name
            for name in ("driving_license", "identity_card", "live_photo")
            if not (getattr(self, name) or "").strip()
        ]


@dataclass
class Booking:
    """
    Reserva de un auto por un cliente.

    Solo la máquina de estados escribe `status`, `deposit_status`,
    `total_price`, `late_return_fee` y los identificadores de pago;
    cada método de negocio valida la transición con `next_status`
    antes de tocar cualquier campo.
    """

    # Identificadores
    id: str
    customer_id: str
    car_id: str

    # Ventana temporal
    start_time: datetime
    duration_hours: int
    end_time: datetime

    # Verificación del cliente
    verification: CustomerVerification
    documents: DocumentHandles

    # Depósito
    deposit_method: str = DEPOSIT_METHOD_CASH
    deposit_details: str | None = None
    deposit_amount: Decimal = Decimal("0")
    deposit_status: str = DEPOSIT_STATUS_PENDING

    # Extras
    with_driver: bool = False
    home_delivery: bool = False
    delivery_address: str | None = None
    delivery_distance_km: Decimal = Decimal("0")

    # Precio
    base_price: Decimal = Decimal("0")
    driver_charge: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    late_return_fee: Decimal = Decimal("0")
    late_hours: int = 0
    total_price: Decimal = Decimal("0")

    # Estado
    status: str = BOOKING_STATUS_PENDING
    admin_notes: str | None = None

    # Pago
    payment_status: str = PAYMENT_STATUS_PENDING
    payment_provider: str | None = None
    payment_order_id: str | None = None
    payment_transaction_id: str | None = None
    paid_amount: Decimal = Decimal("0")
    refunded_amount: Decimal = Decimal("0")
    paid_at: datetime | None = None

    # Entrega y devolución del vehículo
    vehicle_name: str | None = None
    vehicle_number: str | None = None
    start_odometer: int | None = None
    end_odometer: int | None = None
    actual_return_time: datetime | None = None

    # Control de concurrencia
    lock_version: int = 0

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def window(self) -> RentalWindow:
        """Retorna la ventana programada como Value Object."""
        return RentalWindow(start=self.start_time, end=self.end_time)

    @property
    def holds_car(self) -> bool:
        """Verifica si la reserva tiene el auto bloqueado (pagada o en curso)."""
        return self.status in (BOOKING_STATUS_PAID, BOOKING_STATUS_ACTIVE)

    @property
    def refundable_amount(self) -> Decimal:
        """Monto cobrado que todavía no fue reembolsado."""
        return self.paid_amount - self.refunded_amount

    def is_paid_with(self, transaction_id: str | None) -> bool:
        """Verifica si el pago ya fue aplicado con esa transacción."""
        return (
            self.status in PAID_OR_LATER_STATUSES
            and transaction_id is not None
            and self.payment_transaction_id == transaction_id
        )

    # === Métodos de negocio ===

    def _apply(self, event: BookingEvent, now: datetime) -> None:
        self.status = next_status(self.status, event, booking_id=self.id)
        self.updated_at = now

    def accept(self, admin_notes: str | None, now: datetime) -> None:
        """Acepta la solicitud y habilita el pago."""
        self._apply(BookingEvent.ACCEPT, now)
        self.admin_notes = admin_notes

    def decline(self, admin_notes: str | None, now: datetime) -> None:
        """Rechaza la solicitud."""
        self._apply(BookingEvent.DECLINE, now)
        self.admin_notes = admin_notes

    def attach_payment_order(self, provider: str, order_id: str, now: datetime) -> None:
        """Guarda el identificador de orden creado en la pasarela (correlation id)."""
        self._apply(BookingEvent.ATTACH_ORDER, now)
        self.payment_provider = provider
        self.payment_order_id = order_id

    def mark_paid(
        self,
        order_id: str | None,
        transaction_id: str,
        amount: Decimal,
        now: datetime,
    ) -> None:
        """Marca la reserva como pagada."""
        self._apply(BookingEvent.CONFIRM_PAYMENT, now)
        self.payment_status = PAYMENT_STATUS_COMPLETED
        if order_id:
            self.payment_order_id = order_id
        self.payment_transaction_id = transaction_id
        self.paid_amount = amount
        self.paid_at = now

    def mark_payment_failed(self, transaction_id: str | None, now: datetime) -> None:
        """Registra un intento de pago fallido; el cliente puede reintentar."""
        self._apply(BookingEvent.FAIL_PAYMENT, now)
        self.payment_status = PAYMENT_STATUS_FAILED
        if transaction_id:
            self.payment_transaction_id = transaction_id

    def start_rental(
        self,
        vehicle_name: str,
        vehicle_number: str,
        start_odometer: int,
        now: datetime,
    ) -> None:
        """Entrega el vehículo al cliente y recibe el depósito."""
        self._apply(BookingEvent.START, now)
        self.vehicle_name = vehicle_name
        self.vehicle_number = vehicle_number
        self.start_odometer = start_odometer
        self.deposit_status = DEPOSIT_STATUS_RECEIVED

    def complete_rental(
        self,
        end_odometer: int,
        actual_return_time: datetime,
        late_hours: int,
        late_fee: Decimal,
        now: datetime,
    ) -> None:
        """
        Cierra la renta.

        El total se recalcula desde sus componentes (no se suma al total previo).
        """
        self._apply(BookingEvent.COMPLETE, now)
        self.end_odometer = end_odometer
        self.actual_return_time = actual_return_time
        self.late_hours = late_hours
        self.late_return_fee = late_fee
        self.total_price = self.base_price + self.driver_charge + self.delivery_fee + late_fee
        self.deposit_status = DEPOSIT_STATUS_REFUNDED

    def cancel(self, reason: str | None, now: datetime) -> None:
        """Cancela la reserva desde cualquier estado no terminal."""
        self._apply(BookingEvent.CANCEL, now)
        if reason:
            self.admin_notes = reason

    def record_refund(self, amount: Decimal, now: datetime, enforce_bound: bool = True) -> None:
        """
        Acumula un reembolso; al cubrir todo lo cobrado el pago queda reembolsado.

        El límite se valida contra el estado vigente de la reserva, dentro de
        la misma actualización que suma el monto.
        """
        self._apply(BookingEvent.REFUND, now)
        if self.payment_status not in (PAYMENT_STATUS_COMPLETED, PAYMENT_STATUS_REFUNDED):
            raise RefundNotAllowedError(self.id, "la reserva no tiene un pago completado")
        if enforce_bound and amount > self.refundable_amount:
            raise RefundNotAllowedError(
                self.id,
                f"el monto excede lo reembolsable ({self.refundable_amount})",
                available=self.refundable_amount,
            )
        self.refunded_amount += amount
        if self.refunded_amount >= self.paid_amount:
            self.payment_status = PAYMENT_STATUS_REFUNDED

    def release_refund(self, amount: Decimal, now: datetime) -> None:
        """Libera un monto reservado que la pasarela no llegó a reembolsar."""
        self._apply(BookingEvent.REFUND, now)
        self.refunded_amount = max(Decimal("0"), self.refunded_amount - amount)
        if self.payment_status == PAYMENT_STATUS_REFUNDED and self.refunded_amount < self.paid_amount:
            self.payment_status = PAYMENT_STATUS_COMPLETED
