"""
Carga inicial de autos de demostración.

El runtime in-memory la aplica al arrancar (`SEED_DEMO_CARS=true`); para una
base SQL se corre a mano:

    python -m app.infrastructure.seeds
"""

import asyncio
import logging
from decimal import Decimal

from app.application.interfaces.car_store import CarStore
from app.config import get_settings
from app.domain.entities.car import Car

logger = logging.getLogger(__name__)


def _tiers(*prices: int) -> dict[int, Decimal]:
    return {hours: Decimal(price) for hours, price in zip((12, 24, 36, 48, 60, 72), prices)}


DEMO_CARS = (
    Car(
        id="swift-dzire",
        name="Maruti Swift Dzire",
        category="normal",
        registration_number="KA01AB1234",
        tier_prices=_tiers(1200, 2000, 2900, 3800, 4600, 5400),
        security_deposit=Decimal("3000"),
        driver_available=True,
        driver_charge_per_day=Decimal("800"),
    ),
    Car(
        id="creta",
        name="Hyundai Creta",
        category="premium",
        registration_number="KA05MN4321",
        tier_prices=_tiers(1800, 3000, 4300, 5600, 6800, 8000),
        security_deposit=Decimal("5000"),
        driver_available=True,
        driver_charge_per_day=Decimal("1000"),
    ),
    Car(
        id="fortuner",
        name="Toyota Fortuner",
        category="luxury",
        registration_number="KA03XY9876",
        hourly_rate=Decimal("350"),
        security_deposit=Decimal("10000"),
    ),
)


async def seed_cars(car_store: CarStore, cars=DEMO_CARS) -> int:
    """
    Registra los autos que todavía no existen (idempotente).

    Returns:
        Cantidad de autos creados.
    """
    created = 0
    for car in cars:
        if await car_store.get_car(car.id) is None:
            await car_store.add(car)
            created += 1
    logger.info("Demo cars seeded", extra={"created": created, "total": len(cars)})
    return created


async def _seed_database() -> None:
    from app.api.deps import AsyncSessionLocal, engine
    from app.infrastructure.db.repositories.car_store_sql import CarStoreSQL
    from app.infrastructure.db.tables import metadata
    from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    async with AsyncSessionLocal() as session:
        async with SQLAlchemyTransactionManager(session).start():
            await seed_cars(CarStoreSQL(session))
    await engine.dispose()


def main():
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is required to seed a SQL database")
    asyncio.run(_seed_database())
    print("Seed complete.")


if __name__ == "__main__":
    main()
