from datetime import timedelta
from decimal import Decimal

import pytest

from app.application.dtos.booking_dto import CompleteRentalDTO, StartRentalDTO
from app.domain.errors import AccessDeniedError, BookingNotFoundError, NotificationNotFoundError
from tests.factories import START, make_submit, pay_booking


class TestBookingQueries:
    async def test_owner_and_admin_can_read_booking(self, lifecycle, queries):
        booking = await lifecycle.submit(make_submit())

        assert (await queries.get_booking(booking.id, "cust-1", "customer")).id == booking.id
        assert (await queries.get_booking(booking.id, "admin-1", "admin")).id == booking.id

    async def test_other_customer_is_denied(self, lifecycle, queries):
        booking = await lifecycle.submit(make_submit())
        with pytest.raises(AccessDeniedError):
            await queries.get_booking(booking.id, "cust-2", "customer")

    async def test_missing_booking(self, queries):
        with pytest.raises(BookingNotFoundError):
            await queries.get_booking("bk-404", "admin-1", "admin")

    async def test_lists_newest_first_and_filters_by_status(self, lifecycle, queries, clock):
        first = await lifecycle.submit(make_submit())
        clock.advance(minutes=5)
        second = await lifecycle.submit(make_submit(start_time=START + timedelta(days=3)))
        await lifecycle.decline(first.id, "no")

        mine = await queries.list_customer_bookings("cust-1")
        declined = await queries.list_bookings(status="declined")

        assert [b.id for b in mine] == [second.id, first.id]
        assert [b.id for b in declined] == [first.id]
        assert await queries.list_customer_bookings("cust-2") == []

    async def test_stats_count_revenue_of_completed_rentals(self, lifecycle, payments, gateway, queries):
        booking = await lifecycle.submit(make_submit())
        await lifecycle.submit(make_submit(customer_id="cust-2", start_time=START + timedelta(days=3)))
        await lifecycle.accept(booking.id)
        await pay_booking(payments, gateway, booking.id)
        await lifecycle.start(booking.id, StartRentalDTO("Swift Dzire", "KA01AB1234", 1000))
        await lifecycle.complete(booking.id, CompleteRentalDTO(end_odometer=1100, actual_return_time=booking.end_time))

        stats = await queries.stats()

        assert stats.total_bookings == 2
        assert stats.by_status == {"completed": 1, "pending": 1}
        assert stats.total_cars == 1
        assert stats.available_cars == 1
        assert stats.revenue == Decimal("2000")


class TestNotifications:
    async def test_lifecycle_notifications_are_listed_newest_first(self, lifecycle, notifications):
        booking = await lifecycle.submit(make_submit())
        await lifecycle.accept(booking.id)

        listed = await notifications.list_for_user("cust-1")

        assert [n.message for n in listed] == [
            "Your booking for Swift Dzire has been accepted! Please proceed with payment.",
            "New booking request submitted for Swift Dzire",
        ]
        assert all(n.booking_id == booking.id for n in listed)
        assert await notifications.list_for_user("cust-2") == []

    async def test_mark_read(self, lifecycle, notifications):
        await lifecycle.submit(make_submit())
        [notification] = await notifications.list_for_user("cust-1")

        updated = await notifications.mark_read(notification.id, "cust-1")

        assert updated.read is True
        assert (await notifications.list_for_user("cust-1"))[0].read is True

    async def test_cannot_mark_someone_elses_notification(self, lifecycle, notifications):
        await lifecycle.submit(make_submit())
        [notification] = await notifications.list_for_user("cust-1")

        with pytest.raises(NotificationNotFoundError):
            await notifications.mark_read(notification.id, "cust-2")
