"""Implementación in-memory del almacén de reservas."""

import copy
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from app.application.interfaces.booking_store import BookingMutation, BookingStore
from app.domain.entities.booking import Booking
from app.domain.value_objects.rental_window import RentalWindow


class InMemoryBookingStore(BookingStore):
    """
    Almacén de reservas en un dict.

    Entrega y guarda copias: nadie fuera del almacén puede modificar una
    reserva sin pasar por `conditional_update`.
    """

    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}

    async def create(self, booking: Booking) -> Booking:
        if booking.id in self._bookings:
            raise ValueError("Booking id already exists")
        self._bookings[booking.id] = copy.deepcopy(booking)
        return copy.deepcopy(booking)

    async def get_by_id(self, booking_id: str) -> Booking | None:
        booking = self._bookings.get(booking_id)
        return copy.deepcopy(booking) if booking is not None else None

    async def find_by_order_id(self, order_id: str) -> Booking | None:
        for booking in self._bookings.values():
            if booking.payment_order_id == order_id:
                return copy.deepcopy(booking)
        return None

    async def find_conflicting(
        self,
        car_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None,
        statuses: Iterable[str],
    ) -> list[Booking]:
        wanted = set(statuses)
        window = RentalWindow(start=start, end=end)
        conflicts = [
            copy.deepcopy(booking)
            for booking in self._bookings.values()
            if booking.car_id == car_id
            and booking.id != exclude_id
            and booking.status in wanted
            and booking.window.overlaps_with(window)
        ]
        return sorted(conflicts, key=lambda b: b.start_time)

    async def conditional_update(
        self,
        booking_id: str,
        expected_status: str,
        mutation: BookingMutation,
    ) -> Booking | None:
        stored = self._bookings.get(booking_id)
        if stored is None or stored.status != expected_status:
            return None

        candidate = copy.deepcopy(stored)
        mutation(candidate)
        candidate.lock_version = stored.lock_version + 1
        self._bookings[booking_id] = candidate
        return copy.deepcopy(candidate)

    async def list_by_customer(self, customer_id: str) -> list[Booking]:
        bookings = [b for b in self._bookings.values() if b.customer_id == customer_id]
        return [copy.deepcopy(b) for b in self._newest_first(bookings)]

    async def list_all(self, status: str | None = None) -> list[Booking]:
        bookings = [b for b in self._bookings.values() if status is None or b.status == status]
        return [copy.deepcopy(b) for b in self._newest_first(bookings)]

    async def count_by_status(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for booking in self._bookings.values():
            counts[booking.status] = counts.get(booking.status, 0) + 1
        return counts

    async def revenue(self, status: str) -> Decimal:
        return sum(
            (b.total_price for b in self._bookings.values() if b.status == status),
            Decimal("0"),
        )

    @staticmethod
    def _newest_first(bookings: list[Booking]) -> list[Booking]:
        return sorted(bookings, key=lambda b: (b.created_at is not None, b.created_at), reverse=True)
