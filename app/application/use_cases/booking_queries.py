from app.application.dtos.booking_dto import BookingStatsDTO
from app.application.interfaces.booking_store import BookingStore
from app.application.interfaces.car_store import CarStore
from app.domain.constants import BOOKING_STATUS_COMPLETED, ROLE_ADMIN
from app.domain.entities.booking import Booking
from app.domain.errors import AccessDeniedError, BookingNotFoundError


class BookingQueries:
    """Consultas de solo lectura sobre reservas; nunca mutan estado."""

    def __init__(self, booking_store: BookingStore, car_store: CarStore) -> None:
        self._booking_store = booking_store
        self._car_store = car_store

    async def get_booking(self, booking_id: str, user_id: str, role: str) -> Booking:
        booking = await self._booking_store.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id=booking_id)
        if role != ROLE_ADMIN and booking.customer_id != user_id:
            raise AccessDeniedError()
        return booking

    async def list_customer_bookings(self, customer_id: str) -> list[Booking]:
        return await self._booking_store.list_by_customer(customer_id)

    async def list_bookings(self, status: str | None = None) -> list[Booking]:
        return await self._booking_store.list_all(status=status)

    async def stats(self) -> BookingStatsDTO:
        by_status = await self._booking_store.count_by_status()
        return BookingStatsDTO(
            total_bookings=sum(by_status.values()),
            by_status=by_status,
            total_cars=await self._car_store.count(),
            available_cars=await self._car_store.count(only_available=True),
            revenue=await self._booking_store.revenue(BOOKING_STATUS_COMPLETED),
        )
