"""
Integration tests de los stores SQL sobre SQLite in-memory (aiosqlite).

Verifica que el ciclo de vida completo funciona sobre SQLAlchemy Core:
- Commit de cada unidad de trabajo y rollback ante errores
- Update condicionado al estado y compare-and-set de la versión del auto
- Consultas de conflicto con intervalos semiabiertos
"""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from app.application.dtos.booking_dto import CompleteRentalDTO, StartRentalDTO
from app.application.interfaces.clock import FakeClock
from app.application.interfaces.id_generator import SequentialIdGenerator
from app.application.use_cases.booking_lifecycle import BookingLifecycle
from app.application.use_cases.notifications import Notifications
from app.application.use_cases.payment_reconciliation import PaymentReconciliation
from app.domain.constants import (
    BOOKING_STATUS_COMPLETED,
    BOOKING_STATUS_PAYMENT_PENDING,
    BOOKING_STATUS_PENDING,
    CLAIMING_STATUSES,
)
from app.domain.errors import InvalidTransitionError, ValidationError
from app.domain.pricing import PricingEngine
from app.infrastructure.db.repositories.booking_store_sql import BookingStoreSQL
from app.infrastructure.db.repositories.car_store_sql import CarStoreSQL
from app.infrastructure.db.repositories.notification_sink_sql import NotificationSinkSQL
from app.infrastructure.db.tables import bookings, cars
from app.infrastructure.db.transaction_manager import SQLAlchemyTransactionManager
from app.infrastructure.in_memory.payment_gateway import StubPaymentGateway
from tests.factories import NOW, START, make_car, make_submit, pay_booking


@pytest_asyncio.fixture
async def sql_bundle(db_session):
    clock = FakeClock(NOW)
    id_generator = SequentialIdGenerator()
    car_store = CarStoreSQL(db_session)
    await car_store.add(make_car())
    await db_session.commit()
    return {
        "session": db_session,
        "car_store": car_store,
        "booking_store": BookingStoreSQL(db_session),
        "notification_sink": NotificationSinkSQL(db_session, clock=clock, id_generator=id_generator),
        "tx_manager": SQLAlchemyTransactionManager(db_session),
        "clock": clock,
        "id_generator": id_generator,
        "gateway": StubPaymentGateway(),
    }


@pytest.fixture
def sql_lifecycle(sql_bundle) -> BookingLifecycle:
    return BookingLifecycle(
        car_store=sql_bundle["car_store"],
        booking_store=sql_bundle["booking_store"],
        notification_sink=sql_bundle["notification_sink"],
        transaction_manager=sql_bundle["tx_manager"],
        clock=sql_bundle["clock"],
        id_generator=sql_bundle["id_generator"],
        pricing_engine=PricingEngine(),
    )


@pytest.fixture
def sql_payments(sql_bundle, sql_lifecycle) -> PaymentReconciliation:
    return PaymentReconciliation(
        booking_store=sql_bundle["booking_store"],
        lifecycle=sql_lifecycle,
        gateway=sql_bundle["gateway"],
    )


class TestBookingStoreSQL:
    async def test_end_to_end_rental(self, sql_bundle, sql_lifecycle, sql_payments):
        booking = await sql_lifecycle.submit(make_submit())
        await sql_lifecycle.accept(booking.id)
        await pay_booking(sql_payments, sql_bundle["gateway"], booking.id)
        await sql_lifecycle.start(booking.id, StartRentalDTO("Swift Dzire", "KA01AB1234", 1000))
        await sql_lifecycle.complete(
            booking.id,
            CompleteRentalDTO(end_odometer=1050, actual_return_time=booking.end_time + timedelta(hours=2)),
        )

        stored = await sql_bundle["booking_store"].get_by_id(booking.id)
        assert stored.status == BOOKING_STATUS_COMPLETED
        assert stored.total_price == Decimal("2200")
        assert stored.late_hours == 2
        assert stored.start_time == START
        assert stored.verification.license_expiry.year == 2030
        assert stored.documents.live_photo == "files/photo.jpg"
        assert (await sql_bundle["car_store"].get_car("car-1")).available is True
        assert await sql_bundle["booking_store"].revenue(BOOKING_STATUS_COMPLETED) == Decimal("2200")
        assert await sql_bundle["booking_store"].count_by_status() == {BOOKING_STATUS_COMPLETED: 1}

    async def test_work_is_committed(self, sql_bundle, sql_lifecycle):
        booking = await sql_lifecycle.submit(make_submit())
        session = sql_bundle["session"]

        await session.rollback()

        assert (await sql_bundle["booking_store"].get_by_id(booking.id)).status == BOOKING_STATUS_PENDING

    async def test_failed_transition_is_rolled_back(self, sql_bundle, sql_lifecycle):
        booking = await sql_lifecycle.submit(make_submit())
        await sql_lifecycle.accept(booking.id)

        with pytest.raises(InvalidTransitionError):
            await sql_lifecycle.accept(booking.id)

        stored = await sql_bundle["booking_store"].get_by_id(booking.id)
        assert stored.status == BOOKING_STATUS_PAYMENT_PENDING
        assert stored.lock_version == 1

    async def test_rejected_submit_leaves_nothing_behind(self, sql_bundle, sql_lifecycle):
        with pytest.raises(ValidationError):
            await sql_lifecycle.submit(make_submit(deposit_method="cheque"))

        result = await sql_bundle["session"].execute(select(func.count()).select_from(bookings))
        assert result.scalar_one() == 0

    async def test_conditional_update_requires_expected_status(self, sql_bundle, sql_lifecycle):
        booking = await sql_lifecycle.submit(make_submit())
        store = sql_bundle["booking_store"]

        missed = await store.conditional_update(booking.id, "paid", lambda b: setattr(b, "admin_notes", "x"))
        applied = await store.conditional_update(booking.id, BOOKING_STATUS_PENDING, lambda b: setattr(b, "admin_notes", "x"))

        assert missed is None
        assert applied.admin_notes == "x"
        assert applied.lock_version == booking.lock_version + 1

    async def test_find_conflicting_uses_half_open_windows(self, sql_bundle, sql_lifecycle):
        booking = await sql_lifecycle.submit(make_submit())
        store = sql_bundle["booking_store"]

        overlapping = await store.find_conflicting(
            "car-1", START + timedelta(hours=23), START + timedelta(hours=30), None, CLAIMING_STATUSES
        )
        adjacent = await store.find_conflicting(
            "car-1", booking.end_time, booking.end_time + timedelta(hours=12), None, CLAIMING_STATUSES
        )
        excluded = await store.find_conflicting(
            "car-1", START, booking.end_time, booking.id, CLAIMING_STATUSES
        )

        assert [b.id for b in overlapping] == [booking.id]
        assert adjacent == []
        assert excluded == []

    async def test_find_by_order_id(self, sql_bundle, sql_lifecycle, sql_payments):
        booking = await sql_lifecycle.submit(make_submit())
        await sql_lifecycle.accept(booking.id)
        updated, order = await sql_payments.create_order(booking.id, "cust-1")

        found = await sql_bundle["booking_store"].find_by_order_id(order.order_id)

        assert found.id == booking.id
        assert found.payment_order_id == updated.payment_order_id


class TestCarStoreSQL:
    async def test_bump_version_is_compare_and_set(self, sql_bundle):
        car_store = sql_bundle["car_store"]

        assert await car_store.bump_version("car-1", 0) is True
        assert await car_store.bump_version("car-1", 0) is False
        assert (await car_store.get_car("car-1")).lock_version == 1

    async def test_tier_prices_round_trip_as_decimals(self, sql_bundle):
        car = await sql_bundle["car_store"].get_car("car-1")

        assert car.tier_prices[24] == Decimal("2000")
        assert car.driver_available is True

    async def test_count_available(self, sql_bundle):
        car_store = sql_bundle["car_store"]
        await car_store.add(make_car("car-2", available=False))

        assert await car_store.count() == 2
        assert await car_store.count(only_available=True) == 1


class TestTransactionManager:
    async def test_rollback_on_error(self, sql_bundle):
        tx_manager = sql_bundle["tx_manager"]

        with pytest.raises(RuntimeError):
            async with tx_manager.start():
                await sql_bundle["car_store"].add(make_car("car-9"))
                raise RuntimeError("boom")

        result = await sql_bundle["session"].execute(select(func.count()).select_from(cars))
        assert result.scalar_one() == 1

    async def test_nested_units_commit_once(self, sql_bundle):
        tx_manager = sql_bundle["tx_manager"]

        async with tx_manager.start():
            async with tx_manager.start():
                await sql_bundle["car_store"].add(make_car("car-9"))
            await sql_bundle["car_store"].add(make_car("car-10"))

        await sql_bundle["session"].rollback()
        assert await sql_bundle["car_store"].count() == 3


class TestNotificationSinkSQL:
    async def test_lifecycle_notifications_are_persisted(self, sql_bundle, sql_lifecycle):
        await sql_lifecycle.submit(make_submit())
        notifications = Notifications(sql_bundle["notification_sink"], sql_bundle["tx_manager"])

        [notification] = await notifications.list_for_user("cust-1")
        updated = await notifications.mark_read(notification.id, "cust-1")

        assert notification.message == "New booking request submitted for Swift Dzire"
        assert updated.read is True
        assert await sql_bundle["notification_sink"].mark_read(notification.id, "cust-2") is None
