from decimal import Decimal
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.car_store import CarStore
from app.domain.entities.car import Car
from app.infrastructure.db.tables import cars


def _row_to_car(row: Any) -> Car:
    tier_prices = {int(hours): Decimal(str(price)) for hours, price in (row["tier_prices"] or {}).items()}
    return Car(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        registration_number=row["registration_number"],
        tier_prices=tier_prices,
        hourly_rate=row["hourly_rate"],
        security_deposit=row["security_deposit"],
        driver_available=row["driver_available"],
        driver_charge_per_day=row["driver_charge_per_day"],
        available=row["available"],
        lock_version=row["lock_version"],
    )


class CarStoreSQL(CarStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_car(self, car_id: str) -> Car | None:
        result = await self._session.execute(select(cars).where(cars.c.id == car_id).limit(1))
        row = result.mappings().first()
        return _row_to_car(row) if row else None

    async def set_available(self, car_id: str, available: bool) -> None:
        await self._session.execute(update(cars).where(cars.c.id == car_id).values(available=available))

    async def bump_version(self, car_id: str, expected_version: int) -> bool:
        result = await self._session.execute(
            update(cars)
            .where(cars.c.id == car_id, cars.c.lock_version == expected_version)
            .values(lock_version=cars.c.lock_version + 1)
        )
        return result.rowcount == 1

    async def add(self, car: Car) -> Car:
        await self._session.execute(
            insert(cars).values(
                id=car.id,
                name=car.name,
                category=car.category,
                registration_number=car.registration_number,
                tier_prices={str(hours): str(price) for hours, price in car.tier_prices.items()},
                hourly_rate=car.hourly_rate,
                security_deposit=car.security_deposit,
                driver_available=car.driver_available,
                driver_charge_per_day=car.driver_charge_per_day,
                available=car.available,
                lock_version=car.lock_version,
            )
        )
        return car

    async def count(self, only_available: bool = False) -> int:
        stmt = select(func.count()).select_from(cars)
        if only_available:
            stmt = stmt.where(cars.c.available.is_(True))
        result = await self._session.execute(stmt)
        return result.scalar_one()
