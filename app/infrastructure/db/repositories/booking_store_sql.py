import dataclasses
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.booking_store import BookingMutation, BookingStore
from app.domain.entities.booking import (
    Booking,
    CustomerVerification,
    DocumentHandles,
    ReferenceContact,
)
from app.domain.value_objects.rental_window import ensure_utc
from app.infrastructure.db.tables import bookings

DATETIME_FIELDS = ("start_time", "end_time", "paid_at", "actual_return_time", "created_at", "updated_at")


def _verification_to_json(verification: CustomerVerification) -> dict[str, Any]:
    data = dataclasses.asdict(verification)
    data["license_expiry"] = verification.license_expiry.isoformat()
    return data


def _verification_from_json(data: dict[str, Any]) -> CustomerVerification:
    return CustomerVerification(
        full_name=data["full_name"],
        guardian_name=data["guardian_name"],
        guardian_relation=data["guardian_relation"],
        residential_address=data["residential_address"],
        email=data["email"],
        mobile=data["mobile"],
        occupation=data["occupation"],
        reference_1=ReferenceContact(**data["reference_1"]),
        reference_2=ReferenceContact(**data["reference_2"]),
        driving_license_number=data["driving_license_number"],
        license_expiry=date.fromisoformat(data["license_expiry"]),
    )


def _booking_values(booking: Booking) -> dict[str, Any]:
    values = {
        field.name: getattr(booking, field.name)
        for field in dataclasses.fields(booking)
        if field.name not in ("verification", "documents")
    }
    values["verification"] = _verification_to_json(booking.verification)
    values["documents"] = dataclasses.asdict(booking.documents)
    return values


def _row_to_booking(row: Any) -> Booking:
    data = dict(row)
    data["verification"] = _verification_from_json(data["verification"])
    data["documents"] = DocumentHandles(**data["documents"])
    for name in DATETIME_FIELDS:
        if data[name] is not None:
            data[name] = ensure_utc(data[name])
    for name in ("delivery_distance_km", "paid_amount", "refunded_amount", "late_return_fee"):
        data[name] = Decimal(str(data[name] or 0))
    return Booking(**data)


class BookingStoreSQL(BookingStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, booking: Booking) -> Booking:
        await self._session.execute(insert(bookings).values(**_booking_values(booking)))
        return booking

    async def get_by_id(self, booking_id: str) -> Booking | None:
        result = await self._session.execute(
            select(bookings).where(bookings.c.id == booking_id).limit(1)
        )
        row = result.mappings().first()
        return _row_to_booking(row) if row else None

    async def find_by_order_id(self, order_id: str) -> Booking | None:
        result = await self._session.execute(
            select(bookings).where(bookings.c.payment_order_id == order_id).limit(1)
        )
        row = result.mappings().first()
        return _row_to_booking(row) if row else None

    async def find_conflicting(
        self,
        car_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None,
        statuses: Iterable[str],
    ) -> list[Booking]:
        stmt = select(bookings).where(
            bookings.c.car_id == car_id,
            bookings.c.status.in_(sorted(statuses)),
            bookings.c.start_time < end,
            bookings.c.end_time > start,
        )
        if exclude_id is not None:
            stmt = stmt.where(bookings.c.id != exclude_id)
        result = await self._session.execute(stmt.order_by(bookings.c.start_time))
        return [_row_to_booking(row) for row in result.mappings().all()]

    async def conditional_update(
        self,
        booking_id: str,
        expected_status: str,
        mutation: BookingMutation,
    ) -> Booking | None:
        result = await self._session.execute(
            select(bookings).where(bookings.c.id == booking_id).with_for_update()
        )
        row = result.mappings().first()
        if row is None or row["status"] != expected_status:
            return None

        booking = _row_to_booking(row)
        expected_version = booking.lock_version
        mutation(booking)

        values = _booking_values(booking)
        values.pop("id")
        values["lock_version"] = expected_version + 1
        result = await self._session.execute(
            update(bookings)
            .where(
                bookings.c.id == booking_id,
                bookings.c.status == expected_status,
                bookings.c.lock_version == expected_version,
            )
            .values(**values)
        )
        if result.rowcount != 1:
            return None
        booking.lock_version = expected_version + 1
        return booking

    async def list_by_customer(self, customer_id: str) -> list[Booking]:
        result = await self._session.execute(
            select(bookings)
            .where(bookings.c.customer_id == customer_id)
            .order_by(bookings.c.created_at.desc())
        )
        return [_row_to_booking(row) for row in result.mappings().all()]

    async def list_all(self, status: str | None = None) -> list[Booking]:
        stmt = select(bookings)
        if status:
            stmt = stmt.where(bookings.c.status == status)
        result = await self._session.execute(stmt.order_by(bookings.c.created_at.desc()))
        return [_row_to_booking(row) for row in result.mappings().all()]

    async def count_by_status(self) -> dict[str, int]:
        result = await self._session.execute(
            select(bookings.c.status, func.count()).group_by(bookings.c.status)
        )
        return {status: count for status, count in result.all()}

    async def revenue(self, status: str) -> Decimal:
        result = await self._session.execute(
            select(func.coalesce(func.sum(bookings.c.total_price), 0)).where(bookings.c.status == status)
        )
        return Decimal(str(result.scalar_one()))
