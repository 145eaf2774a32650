"""Interface CarStore - Puerto hacia el catálogo externo de autos."""

from abc import ABC, abstractmethod

from app.domain.entities.car import Car


class CarStore(ABC):
    """
    Puerto de lectura del catálogo de autos.

    El núcleo solo escribe el flag `available` y la versión usada para
    compare-and-set; el resto del catálogo lo administra otro servicio.
    """

    @abstractmethod
    async def get_car(self, car_id: str) -> Car | None:
        """
        Busca un auto por su identificador.

        Returns:
            El auto o None si no existe.
        """
        raise NotImplementedError

    @abstractmethod
    async def set_available(self, car_id: str, available: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    async def bump_version(self, car_id: str, expected_version: int) -> bool:
        """
        Compare-and-set sobre el auto.

        Incrementa `lock_version` solo si sigue valiendo `expected_version`.

        Returns:
            True si ganó la carrera, False si otra transacción comprometió el auto antes.
        """
        raise NotImplementedError

    @abstractmethod
    async def add(self, car: Car) -> Car:
        """Registra un auto (uso de tests y de carga inicial)."""
        raise NotImplementedError

    @abstractmethod
    async def count(self, only_available: bool = False) -> int:
        raise NotImplementedError
