"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Catálogo de autos y datos de verificación del cliente
- Bundle in-memory (stores, pasarela simulada, FakeClock) y casos de uso
- Cliente HTTP de prueba (FastAPI TestClient) sobre el bundle in-memory
- Engine SQLite in-memory para los stores SQL
"""

import os
from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.application.interfaces.clock import FakeClock
from app.application.interfaces.id_generator import SequentialIdGenerator
from app.application.use_cases.availability import AvailabilityChecker
from app.application.use_cases.booking_lifecycle import BookingLifecycle
from app.application.use_cases.booking_queries import BookingQueries
from app.application.use_cases.notifications import Notifications
from app.application.use_cases.payment_reconciliation import PaymentReconciliation
from app.domain.entities.car import Car
from app.domain.pricing import PricingEngine
from app.infrastructure.db.tables import metadata
from app.infrastructure.in_memory.booking_store import InMemoryBookingStore
from app.infrastructure.in_memory.car_store import InMemoryCarStore
from app.infrastructure.in_memory.notification_sink import InMemoryNotificationSink
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from tests.factories import NOW, make_car, make_submit

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# La app de los tests HTTP usa la pasarela simulada y arranca sin autos de demostración
os.environ.setdefault("PAYMENT_PROVIDER", "stub")
os.environ.setdefault("SEED_DEMO_CARS", "false")

# ============================================================================
# FIXTURES DE DATOS DE PRUEBA
# ============================================================================

@pytest.fixture
def car() -> Car:
    return make_car()


@pytest.fixture
def submit_request():
    return make_submit()


# ============================================================================
# FIXTURES DEL BUNDLE IN-MEMORY
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def gateway() -> StubPaymentGateway:
    return StubPaymentGateway()


@pytest.fixture
def bundle(clock, gateway, car):
    """Stores in-memory con un auto en el catálogo y la pasarela simulada."""
    id_generator = SequentialIdGenerator()
    return {
        "car_store": InMemoryCarStore([car]),
        "booking_store": InMemoryBookingStore(),
        "notification_sink": InMemoryNotificationSink(clock=clock, id_generator=id_generator),
        "payment_gateway": gateway,
        "tx_manager": NoopTransactionManager(),
        "clock": clock,
        "id_generator": id_generator,
    }


@pytest.fixture
def lifecycle(bundle) -> BookingLifecycle:
    return BookingLifecycle(
        car_store=bundle["car_store"],
        booking_store=bundle["booking_store"],
        notification_sink=bundle["notification_sink"],
        transaction_manager=bundle["tx_manager"],
        clock=bundle["clock"],
        id_generator=bundle["id_generator"],
        pricing_engine=PricingEngine(),
    )


@pytest.fixture
def payments(bundle, lifecycle) -> PaymentReconciliation:
    return PaymentReconciliation(
        booking_store=bundle["booking_store"],
        lifecycle=lifecycle,
        gateway=bundle["payment_gateway"],
        timeout_seconds=0.5,
    )


@pytest.fixture
def availability(bundle) -> AvailabilityChecker:
    return AvailabilityChecker(bundle["booking_store"])


@pytest.fixture
def queries(bundle) -> BookingQueries:
    return BookingQueries(bundle["booking_store"], bundle["car_store"])


@pytest.fixture
def notifications(bundle) -> Notifications:
    return Notifications(bundle["notification_sink"], bundle["tx_manager"])


# ============================================================================
# FIXTURES DE CLIENTE HTTP
# ============================================================================

@pytest.fixture
def api_bundle(bundle):
    """
    Reemplaza el bundle in-memory cacheado de la app por el del test.
    """
    from app.api import dependencies

    dependencies._in_memory_bundle.cache_clear()
    original = dependencies._in_memory_bundle
    dependencies._in_memory_bundle = lambda: bundle
    yield bundle
    dependencies._in_memory_bundle = original
    original.cache_clear()


@pytest.fixture
def client(api_bundle) -> Generator[TestClient, None, None]:
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ============================================================================
# HOOKS DE PYTEST
# ============================================================================

@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """
    Reset circuit breaker antes de cada test.
    Evita que tests fallen por breakers abiertos de tests anteriores.
    """
    from app.infrastructure.circuit_breaker import payment_breaker

    payment_breaker.close()

    yield

    payment_breaker.close()
