"""Implementación in-memory del catálogo de autos."""

import copy

from app.application.interfaces.car_store import CarStore
from app.domain.entities.car import Car


class InMemoryCarStore(CarStore):
    def __init__(self, cars: list[Car] | None = None) -> None:
        self._cars: dict[str, Car] = {}
        for car in cars or []:
            self._cars[car.id] = copy.deepcopy(car)

    async def get_car(self, car_id: str) -> Car | None:
        car = self._cars.get(car_id)
        return copy.deepcopy(car) if car is not None else None

    async def set_available(self, car_id: str, available: bool) -> None:
        if car_id not in self._cars:
            raise ValueError("Car not found")
        self._cars[car_id].available = available

    async def bump_version(self, car_id: str, expected_version: int) -> bool:
        car = self._cars.get(car_id)
        if car is None or car.lock_version != expected_version:
            return False
        car.lock_version += 1
        return True

    async def add(self, car: Car) -> Car:
        self._cars[car.id] = copy.deepcopy(car)
        return car

    async def count(self, only_available: bool = False) -> int:
        return sum(1 for car in self._cars.values() if car.available or not only_available)
