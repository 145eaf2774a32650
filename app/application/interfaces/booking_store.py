"""Interface BookingStore - Puerto de persistencia de reservas."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal

from app.domain.entities.booking import Booking

BookingMutation = Callable[[Booking], None]


class BookingStore(ABC):
    """
    Puerto de persistencia de reservas.

    Ninguna implementación guarda estado de reservas en caché fuera del
    almacén: cada lectura ve el último valor confirmado.
    """

    @abstractmethod
    async def create(self, booking: Booking) -> Booking:
        raise NotImplementedError

    @abstractmethod
    async def get_by_id(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    async def find_by_order_id(self, order_id: str) -> Booking | None:
        """Busca por el identificador de orden de la pasarela (correlation id)."""
        raise NotImplementedError

    @abstractmethod
    async def find_conflicting(
        self,
        car_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None,
        statuses: Iterable[str],
    ) -> list[Booking]:
        """
        Reservas del auto cuya ventana se superpone con [start, end).

        Args:
            car_id: Auto a consultar.
            start: Inicio de la ventana candidata.
            end: Fin (exclusivo) de la ventana candidata.
            exclude_id: Reserva a ignorar (la propia, al re-verificar).
            statuses: Estados que cuentan como conflicto.

        Returns:
            Lista de reservas en conflicto, ordenadas por inicio.
        """
        raise NotImplementedError

    @abstractmethod
    async def conditional_update(
        self,
        booking_id: str,
        expected_status: str,
        mutation: BookingMutation,
    ) -> Booking | None:
        """
        Aplica `mutation` y persiste solo si el estado guardado sigue siendo `expected_status`.

        La mutación recibe una copia de la reserva; la versión se incrementa
        en cada escritura exitosa.

        Returns:
            La reserva actualizada, o None si el estado (o la versión) cambió
            desde la lectura y nada fue escrito.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_by_customer(self, customer_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self, status: str | None = None) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        raise NotImplementedError

    @abstractmethod
    async def revenue(self, status: str) -> Decimal:
        """Suma de `total_price` de las reservas en el estado dado."""
        raise NotImplementedError
