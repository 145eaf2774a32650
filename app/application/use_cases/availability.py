from collections.abc import Iterable
from datetime import datetime

from app.application.interfaces.booking_store import BookingStore
from app.domain.constants import CLAIMING_STATUSES
from app.domain.errors import ValidationError
from app.domain.value_objects.rental_window import RentalWindow


class AvailabilityChecker:
    """
    Decide si un auto está libre en una ventana semiabierta [start, end).

    Por defecto cuentan todas las reservas que reclaman el auto (incluidas
    las solicitudes pendientes); el ciclo de vida pasa COMMITTED_STATUSES
    cuando solo importan las reservas ya comprometidas.
    """

    def __init__(self, booking_store: BookingStore) -> None:
        self._booking_store = booking_store

    async def is_available(
        self,
        car_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
        statuses: Iterable[str] = CLAIMING_STATUSES,
    ) -> bool:
        conflicts = await self.list_conflicts(car_id, start, end, exclude_booking_id, statuses)
        return not conflicts

    async def list_conflicts(
        self,
        car_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
        statuses: Iterable[str] = CLAIMING_STATUSES,
    ) -> list[RentalWindow]:
        try:
            window = RentalWindow(start=start, end=end)
        except ValueError as exc:
            raise ValidationError(field="end", message=str(exc)) from exc

        bookings = await self._booking_store.find_conflicting(
            car_id=car_id,
            start=window.start,
            end=window.end,
            exclude_id=exclude_booking_id,
            statuses=frozenset(statuses),
        )
        return [booking.window for booking in bookings if booking.window.overlaps_with(window)]
