from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AsyncSessionLocal
from app.application.interfaces.clock import SystemClock
from app.application.interfaces.id_generator import UUIDIdGenerator
from app.application.use_cases.availability import AvailabilityChecker
from app.application.use_cases.booking_lifecycle import BookingLifecycle
from app.application.use_cases.booking_queries import BookingQueries
from app.application.use_cases.notifications import Notifications
from app.application.use_cases.payment_reconciliation import PaymentReconciliation
from app.config import Settings, get_settings
from app.domain.constants import ROLE_ADMIN, ROLE_CUSTOMER
from app.domain.errors import AccessDeniedError
from app.domain.pricing import PricingConfig, PricingEngine
from app.infrastructure.db.repositories.booking_store_sql import BookingStoreSQL
from app.infrastructure.db.repositories.car_store_sql import CarStoreSQL
from app.infrastructure.db.repositories.notification_sink_sql import NotificationSinkSQL
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.gateways.factory import build_payment_gateway
from app.infrastructure.in_memory.booking_store import InMemoryBookingStore
from app.infrastructure.in_memory.car_store import InMemoryCarStore
from app.infrastructure.in_memory.notification_sink import InMemoryNotificationSink
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from app.infrastructure.seeds import seed_cars


@dataclass(frozen=True)
class Actor:
    """Usuario autenticado por el gateway de identidad que precede a la API."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


def _pricing_engine(settings: Settings) -> PricingEngine:
    return PricingEngine(
        PricingConfig(
            delivery_flat_fee=settings.delivery_flat_fee,
            delivery_max_distance_km=settings.delivery_max_distance_km,
            late_fee_per_hour=settings.late_fee_per_hour,
            duration_unit_hours=settings.duration_unit_hours,
        )
    )


@lru_cache(maxsize=1)
def _payment_gateway():
    return build_payment_gateway(get_settings())


@lru_cache(maxsize=1)
def _in_memory_bundle():
    clock = SystemClock()
    id_generator = UUIDIdGenerator()
    return {
        "car_store": InMemoryCarStore(),
        "booking_store": InMemoryBookingStore(),
        "notification_sink": InMemoryNotificationSink(clock=clock, id_generator=id_generator),
        "payment_gateway": _payment_gateway(),
        "tx_manager": NoopTransactionManager(),
        "clock": clock,
        "id_generator": id_generator,
    }


async def init_runtime(settings: Settings) -> None:
    """
    Prepara el runtime al arrancar la app.

    Construye la pasarela (una configuración incompleta falla aquí y no en el
    primer pago) y carga los autos de demostración en el runtime in-memory.
    """
    _payment_gateway()
    if settings.use_in_memory and settings.seed_demo_cars:
        await seed_cars(_in_memory_bundle()["car_store"])


def _build_use_cases(settings: Settings, stores: dict) -> dict:
    lifecycle = BookingLifecycle(
        car_store=stores["car_store"],
        booking_store=stores["booking_store"],
        notification_sink=stores["notification_sink"],
        transaction_manager=stores["tx_manager"],
        clock=stores["clock"],
        id_generator=stores["id_generator"],
        pricing_engine=_pricing_engine(settings),
    )
    return {
        "lifecycle": lifecycle,
        "payments": PaymentReconciliation(
            booking_store=stores["booking_store"],
            lifecycle=lifecycle,
            gateway=stores["payment_gateway"],
            currency_code=settings.currency_code,
            timeout_seconds=settings.payment_gateway_timeout_seconds,
            enforce_refund_amount_bound=settings.enforce_refund_amount_bound,
        ),
        "availability": AvailabilityChecker(booking_store=stores["booking_store"]),
        "queries": BookingQueries(
            booking_store=stores["booking_store"],
            car_store=stores["car_store"],
        ),
        "notifications": Notifications(
            notification_sink=stores["notification_sink"],
            transaction_manager=stores["tx_manager"],
        ),
    }


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
):
    if settings.use_in_memory:
        return _build_use_cases(settings, _in_memory_bundle())

    if not session:
        raise RuntimeError("DB session not available")

    clock = SystemClock()
    id_generator = UUIDIdGenerator()
    stores = {
        "car_store": CarStoreSQL(session),
        "booking_store": BookingStoreSQL(session),
        "notification_sink": NotificationSinkSQL(session, clock=clock, id_generator=id_generator),
        "payment_gateway": _payment_gateway(),
        "tx_manager": SQLAlchemyTransactionManager(session),
        "clock": clock,
        "id_generator": id_generator,
    }
    return _build_use_cases(settings, stores)


async def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=ROLE_CUSTOMER),
) -> Actor:
    if not x_user_id:
        raise AccessDeniedError("Falta el header X-User-Id")
    role = x_user_role.lower()
    if role not in (ROLE_CUSTOMER, ROLE_ADMIN):
        raise AccessDeniedError(f"Rol desconocido: {x_user_role}")
    return Actor(user_id=x_user_id, role=role)


async def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if not actor.is_admin:
        raise AccessDeniedError("Se requiere rol admin")
    return actor
