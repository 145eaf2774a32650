import logging
from collections.abc import Callable
from decimal import Decimal

from app.application.dtos.booking_dto import CompleteRentalDTO, StartRentalDTO, SubmitBookingDTO
from app.application.interfaces.booking_store import BookingStore
from app.application.interfaces.car_store import CarStore
from app.application.interfaces.clock import Clock
from app.application.interfaces.id_generator import IdGenerator
from app.application.interfaces.notification_sink import NotificationSink
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.constants import (
    COMMITTED_STATUSES,
    DEPOSIT_METHOD_BIKE,
    DEPOSIT_METHODS,
    NOTIFICATION_BOOKING_UPDATE,
    NOTIFICATION_PAYMENT,
    PAID_OR_LATER_STATUSES,
    PAYMENT_STATUS_FAILED,
)
from app.domain.entities.booking import Booking
from app.domain.entities.car import Car
from app.domain.errors import (
    BookingNotFoundError,
    CarNotFoundError,
    CarUnavailableError,
    ConcurrentBookingConflictError,
    DriverUnavailableError,
    InvalidTransitionError,
    ValidationError,
)
from app.domain.pricing import PricingEngine
from app.domain.state_machine import BookingEvent, next_status
from app.domain.value_objects.rental_window import RentalWindow, ensure_utc

REVIEW_ACCEPT = "accept"
REVIEW_DECLINE = "decline"


class BookingLifecycle:
    """
    Único punto de escritura del estado de una reserva.

    Cada operación corre dentro de una unidad de trabajo: lee la reserva,
    valida la transición, aplica la mutación con un update condicionado al
    estado leído y emite la notificación al final. Las transiciones que
    comprometen el auto (aceptar, confirmar pago) además ganan un
    compare-and-set sobre la versión del auto.
    """

    def __init__(
        self,
        car_store: CarStore,
        booking_store: BookingStore,
        notification_sink: NotificationSink,
        transaction_manager: TransactionManager,
        clock: Clock,
        id_generator: IdGenerator,
        pricing_engine: PricingEngine,
    ) -> None:
        self._car_store = car_store
        self._booking_store = booking_store
        self._notification_sink = notification_sink
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._id_generator = id_generator
        self._pricing_engine = pricing_engine
        self._logger = logging.getLogger(__name__)

    async def submit(self, request: SubmitBookingDTO) -> Booking:
        self._pricing_engine.validate_duration(request.duration_hours)
        if request.deposit_method not in DEPOSIT_METHODS:
            raise ValidationError(
                field="deposit_method",
                message=f"debe ser uno de {sorted(DEPOSIT_METHODS)}",
            )

        async with self._transaction_manager.start():
            car = await self._car_store.get_car(request.car_id)
            if car is None:
                raise CarNotFoundError(request.car_id)
            if not car.available:
                raise CarUnavailableError(car.id)
            if request.with_driver and not car.driver_available:
                raise DriverUnavailableError(car.id)

            missing = request.documents.missing()
            if missing:
                raise ValidationError(
                    field="documents",
                    message=f"faltan documentos: {', '.join(missing)}",
                )

            window = RentalWindow.from_duration(request.start_time, request.duration_hours)
            conflicts = await self._booking_store.find_conflicting(
                car_id=car.id,
                start=window.start,
                end=window.end,
                exclude_id=None,
                statuses=COMMITTED_STATUSES,
            )
            if conflicts:
                raise CarUnavailableError(car.id, reason="el auto ya está reservado en ese horario")

            breakdown = self._pricing_engine.price(
                car,
                request.duration_hours,
                with_driver=request.with_driver,
                home_delivery=request.home_delivery,
                delivery_distance_km=request.delivery_distance_km,
            )
            if request.home_delivery and not self._pricing_engine.delivery_in_range(
                request.delivery_distance_km
            ):
                self._logger.warning(
                    "Home delivery requested beyond free-delivery range, no fee charged",
                    extra={
                        "car_id": car.id,
                        "delivery_distance_km": str(request.delivery_distance_km),
                    },
                )

            now = self._clock.now()
            booking = Booking(
                id=self._id_generator.new_booking_id(),
                customer_id=request.customer_id,
                car_id=car.id,
                start_time=window.start,
                duration_hours=request.duration_hours,
                end_time=window.end,
                verification=request.verification,
                documents=request.documents,
                deposit_method=request.deposit_method,
                deposit_details=(
                    request.deposit_details
                    if request.deposit_method == DEPOSIT_METHOD_BIKE
                    else None
                ),
                deposit_amount=car.security_deposit,
                with_driver=request.with_driver,
                home_delivery=request.home_delivery,
                delivery_address=request.delivery_address if request.home_delivery else None,
                delivery_distance_km=(
                    Decimal(request.delivery_distance_km) if request.home_delivery else Decimal("0")
                ),
                base_price=breakdown.base_price,
                driver_charge=breakdown.driver_charge,
                delivery_fee=breakdown.delivery_fee,
                total_price=breakdown.total,
                created_at=now,
                updated_at=now,
            )
            booking = await self._booking_store.create(booking)

            await self._notify(
                booking,
                f"New booking request submitted for {car.name}",
                NOTIFICATION_BOOKING_UPDATE,
            )

        self._logger.info(
            "Booking submitted",
            extra={
                "booking_id": booking.id,
                "car_id": car.id,
                "customer_id": booking.customer_id,
                "total_price": str(booking.total_price),
            },
        )
        return booking

    async def review(self, booking_id: str, action: str, admin_notes: str | None = None) -> Booking:
        if action == REVIEW_ACCEPT:
            return await self.accept(booking_id, admin_notes)
        if action == REVIEW_DECLINE:
            return await self.decline(booking_id, admin_notes)
        raise ValidationError(field="action", message='use "accept" o "decline"')

    async def accept(self, booking_id: str, admin_notes: str | None = None) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.ACCEPT)
            car = await self._claim_car(booking)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.ACCEPT,
                lambda b: b.accept(admin_notes, now),
            )
            await self._notify(
                updated,
                f"Your booking for {car.name} has been accepted! Please proceed with payment.",
                NOTIFICATION_BOOKING_UPDATE,
            )

        self._logger.info(
            "Booking accepted",
            extra={"booking_id": booking_id, "status": updated.status},
        )
        return updated

    async def decline(self, booking_id: str, admin_notes: str | None = None) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.DECLINE)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.DECLINE,
                lambda b: b.decline(admin_notes, now),
            )
            await self._car_store.set_available(booking.car_id, True)
            car_name = await self._car_name(booking.car_id)
            await self._notify(
                updated,
                f"Your booking for {car_name} has been declined. Reason: {admin_notes or 'not specified'}",
                NOTIFICATION_BOOKING_UPDATE,
            )

        self._logger.info(
            "Booking declined",
            extra={"booking_id": booking_id, "status": updated.status},
        )
        return updated

    async def attach_payment_order(self, booking_id: str, provider: str, order_id: str) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.ATTACH_ORDER)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.ATTACH_ORDER,
                lambda b: b.attach_payment_order(provider, order_id, now),
            )

        self._logger.info(
            "Payment order attached",
            extra={"booking_id": booking_id, "provider": provider, "order_id": order_id},
        )
        return updated

    async def confirm_payment(
        self,
        booking_id: str,
        transaction_id: str,
        order_id: str | None = None,
        amount: Decimal | None = None,
    ) -> Booking:
        """
        Aplica un pago exitoso.

        Repetir la confirmación con la misma transacción devuelve la reserva
        sin volver a escribirla ni a notificar.
        """
        try:
            async with self._transaction_manager.start():
                booking = await self._load(booking_id)
                if booking.is_paid_with(transaction_id):
                    self._logger.info(
                        "Payment already applied, skipping",
                        extra={"booking_id": booking_id, "transaction_id": transaction_id},
                    )
                    return booking
                if booking.status in PAID_OR_LATER_STATUSES:
                    raise InvalidTransitionError(
                        action=BookingEvent.CONFIRM_PAYMENT.value,
                        current_status=booking.status,
                        booking_id=booking.id,
                    )
                self._ensure_allowed(booking, BookingEvent.CONFIRM_PAYMENT)

                car = await self._claim_car(booking)
                paid_amount = amount if amount is not None else booking.total_price
                now = self._clock.now()
                updated = await self._transition(
                    booking,
                    BookingEvent.CONFIRM_PAYMENT,
                    lambda b: b.mark_paid(order_id, transaction_id, paid_amount, now),
                )
                await self._car_store.set_available(car.id, False)
                await self._notify(
                    updated,
                    f"Payment successful! ₹{updated.paid_amount} paid for {car.name}. Booking confirmed!",
                    NOTIFICATION_PAYMENT,
                )
        except (ConcurrentBookingConflictError, InvalidTransitionError):
            # Una confirmación concurrente con la misma transacción pudo ganar la carrera
            fresh = await self._booking_store.get_by_id(booking_id)
            if fresh is not None and fresh.is_paid_with(transaction_id):
                return fresh
            raise

        self._logger.info(
            "Payment confirmed",
            extra={
                "booking_id": booking_id,
                "order_id": updated.payment_order_id,
                "transaction_id": transaction_id,
                "paid_amount": str(updated.paid_amount),
            },
        )
        return updated

    async def record_payment_failure(self, booking_id: str, transaction_id: str | None = None) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            if (
                transaction_id is not None
                and booking.payment_status == PAYMENT_STATUS_FAILED
                and booking.payment_transaction_id == transaction_id
            ):
                return booking
            self._ensure_allowed(booking, BookingEvent.FAIL_PAYMENT)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.FAIL_PAYMENT,
                lambda b: b.mark_payment_failed(transaction_id, now),
            )
            car_name = await self._car_name(booking.car_id)
            await self._notify(
                updated,
                f"Payment failed for {car_name}. Please try again.",
                NOTIFICATION_PAYMENT,
            )

        self._logger.warning(
            "Payment failed",
            extra={"booking_id": booking_id, "transaction_id": transaction_id},
        )
        return updated

    async def start(self, booking_id: str, request: StartRentalDTO) -> Booking:
        if request.start_odometer < 0:
            raise ValidationError(field="start_odometer", message="no puede ser negativo")

        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.START)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.START,
                lambda b: b.start_rental(
                    request.vehicle_name, request.vehicle_number, request.start_odometer, now
                ),
            )
            await self._notify(
                updated,
                f"Your rental for {request.vehicle_name} has started. Enjoy your ride!",
                NOTIFICATION_BOOKING_UPDATE,
            )

        self._logger.info(
            "Rental started",
            extra={"booking_id": booking_id, "start_odometer": request.start_odometer},
        )
        return updated

    async def complete(self, booking_id: str, request: CompleteRentalDTO) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.COMPLETE)
            if booking.start_odometer is not None and request.end_odometer < booking.start_odometer:
                raise ValidationError(
                    field="end_odometer",
                    message=f"debe ser mayor o igual a {booking.start_odometer}",
                )

            now = self._clock.now()
            returned_at = ensure_utc(request.actual_return_time) if request.actual_return_time else now
            late_hours, late_fee = self._pricing_engine.late_fee(booking.window, returned_at)
            updated = await self._transition(
                booking,
                BookingEvent.COMPLETE,
                lambda b: b.complete_rental(request.end_odometer, returned_at, late_hours, late_fee, now),
            )
            await self._car_store.set_available(booking.car_id, True)

            car_name = await self._car_name(booking.car_id)
            message = f"Your rental for {car_name} is completed."
            if late_fee > 0:
                message += f" Late return fee of ₹{late_fee} has been charged ({late_hours} hours late)."
            message += " Your deposit will be refunded."
            await self._notify(updated, message, NOTIFICATION_BOOKING_UPDATE)

        self._logger.info(
            "Rental completed",
            extra={
                "booking_id": booking_id,
                "late_hours": late_hours,
                "late_fee": str(late_fee),
                "total_price": str(updated.total_price),
            },
        )
        return updated

    async def cancel(self, booking_id: str, reason: str | None = None) -> Booking:
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.CANCEL)
            held_car = booking.holds_car
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.CANCEL,
                lambda b: b.cancel(reason, now),
            )
            if held_car:
                await self._car_store.set_available(booking.car_id, True)
            car_name = await self._car_name(booking.car_id)
            message = f"Your booking for {car_name} has been cancelled."
            if reason:
                message += f" Reason: {reason}"
            await self._notify(updated, message, NOTIFICATION_BOOKING_UPDATE)

        self._logger.info(
            "Booking cancelled",
            extra={"booking_id": booking_id, "released_car": held_car},
        )
        return updated

    async def record_refund(self, booking_id: str, amount: Decimal, enforce_bound: bool = True) -> Booking:
        """
        Reserva el monto a reembolsar antes de llamar a la pasarela.

        El límite se vuelve a validar dentro de la actualización condicional:
        dos reembolsos concurrentes nunca suman más de lo cobrado.
        """
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            self._ensure_allowed(booking, BookingEvent.REFUND)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.REFUND,
                lambda b: b.record_refund(amount, now, enforce_bound=enforce_bound),
            )

        self._logger.info(
            "Refund amount reserved",
            extra={
                "booking_id": booking_id,
                "amount": str(amount),
                "refunded_total": str(updated.refunded_amount),
            },
        )
        return updated

    async def release_refund(self, booking_id: str, amount: Decimal) -> Booking:
        """Devuelve un monto reservado cuando la pasarela no completó el reembolso."""
        async with self._transaction_manager.start():
            booking = await self._load(booking_id)
            now = self._clock.now()
            updated = await self._transition(
                booking,
                BookingEvent.REFUND,
                lambda b: b.release_refund(amount, now),
            )

        self._logger.warning(
            "Refund reservation released",
            extra={"booking_id": booking_id, "amount": str(amount)},
        )
        return updated

    async def notify_refund(self, booking: Booking, amount: Decimal) -> None:
        async with self._transaction_manager.start():
            await self._notify(
                booking,
                f"A refund of ₹{amount} has been initiated for your booking.",
                NOTIFICATION_PAYMENT,
            )

    async def _load(self, booking_id: str) -> Booking:
        booking = await self._booking_store.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id=booking_id)
        return booking

    def _ensure_allowed(self, booking: Booking, event: BookingEvent) -> None:
        next_status(booking.status, event, booking_id=booking.id)

    async def _transition(
        self,
        booking: Booking,
        event: BookingEvent,
        mutation: Callable[[Booking], None],
    ) -> Booking:
        updated = await self._booking_store.conditional_update(booking.id, booking.status, mutation)
        if updated is None:
            fresh = await self._booking_store.get_by_id(booking.id)
            current_status = fresh.status if fresh is not None else booking.status
            self._logger.warning(
                "Booking changed concurrently, transition rejected",
                extra={
                    "booking_id": booking.id,
                    "action": event.value,
                    "expected_status": booking.status,
                    "current_status": current_status,
                },
            )
            raise InvalidTransitionError(
                action=event.value,
                current_status=current_status,
                booking_id=booking.id,
            )
        return updated

    async def _claim_car(self, booking: Booking) -> Car:
        car = await self._car_store.get_car(booking.car_id)
        if car is None:
            raise CarNotFoundError(booking.car_id)

        conflicts = await self._booking_store.find_conflicting(
            car_id=car.id,
            start=booking.start_time,
            end=booking.end_time,
            exclude_id=booking.id,
            statuses=COMMITTED_STATUSES,
        )
        if conflicts:
            self._logger.warning(
                "Overlapping committed booking found",
                extra={
                    "booking_id": booking.id,
                    "car_id": car.id,
                    "conflicting_ids": [c.id for c in conflicts],
                },
            )
            raise ConcurrentBookingConflictError(car.id, booking_id=booking.id)

        if not await self._car_store.bump_version(car.id, car.lock_version):
            raise ConcurrentBookingConflictError(car.id, booking_id=booking.id)
        return car

    async def _car_name(self, car_id: str) -> str:
        car = await self._car_store.get_car(car_id)
        return car.name if car is not None else car_id

    async def _notify(self, booking: Booking, message: str, category: str) -> None:
        try:
            await self._notification_sink.emit(
                user_id=booking.customer_id,
                message=message,
                category=category,
                booking_id=booking.id,
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "Notification emission failed",
                exc_info=exc,
                extra={"booking_id": booking.id, "category": category},
            )
