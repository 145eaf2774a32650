"""Interface IdGenerator - Puerto para generación de identificadores."""

import uuid
from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """Puerto para generación de identificadores de reservas y notificaciones."""

    @abstractmethod
    def new_booking_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def new_notification_id(self) -> str:
        raise NotImplementedError


class UUIDIdGenerator(IdGenerator):
    """Implementación real basada en UUID v4."""

    def new_booking_id(self) -> str:
        return str(uuid.uuid4())

    def new_notification_id(self) -> str:
        return str(uuid.uuid4())


class SequentialIdGenerator(IdGenerator):
    """
    Implementación fake para testing.

    Genera valores predecibles (`bk-0001`, `nt-0001`, ...).
    """

    def __init__(self) -> None:
        self._booking_counter = 0
        self._notification_counter = 0

    def new_booking_id(self) -> str:
        self._booking_counter += 1
        return f"bk-{self._booking_counter:04d}"

    def new_notification_id(self) -> str:
        self._notification_counter += 1
        return f"nt-{self._notification_counter:04d}"
