from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.clock import Clock
from app.application.interfaces.id_generator import IdGenerator
from app.application.interfaces.notification_sink import NotificationSink
from app.domain.constants import NOTIFICATION_GENERAL
from app.domain.entities.notification import Notification
from app.domain.value_objects.rental_window import ensure_utc
from app.infrastructure.db.tables import notifications


def _row_to_notification(row) -> Notification:
    return Notification(
        id=row["id"],
        user_id=row["user_id"],
        booking_id=row["booking_id"],
        message=row["message"],
        category=row["category"],
        read=row["read"],
        created_at=ensure_utc(row["created_at"]),
    )


class NotificationSinkSQL(NotificationSink):
    def __init__(self, session: AsyncSession, clock: Clock, id_generator: IdGenerator) -> None:
        self._session = session
        self._clock = clock
        self._id_generator = id_generator

    async def emit(
        self,
        user_id: str,
        message: str,
        category: str = NOTIFICATION_GENERAL,
        booking_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            id=self._id_generator.new_notification_id(),
            user_id=user_id,
            message=message,
            category=category,
            booking_id=booking_id,
            created_at=self._clock.now(),
        )
        # Savepoint: un fallo aquí no revierte la transición que lo emitió
        async with self._session.begin_nested():
            await self._session.execute(
                insert(notifications).values(
                    id=notification.id,
                    user_id=notification.user_id,
                    booking_id=notification.booking_id,
                    message=notification.message,
                    category=notification.category,
                    read=False,
                    created_at=notification.created_at,
                )
            )
        return notification

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        result = await self._session.execute(
            select(notifications)
            .where(notifications.c.user_id == user_id)
            .order_by(notifications.c.created_at.desc())
            .limit(limit)
        )
        return [_row_to_notification(row) for row in result.mappings().all()]

    async def mark_read(self, notification_id: str, user_id: str) -> Notification | None:
        result = await self._session.execute(
            update(notifications)
            .where(notifications.c.id == notification_id, notifications.c.user_id == user_id)
            .values(read=True)
        )
        if result.rowcount == 0:
            return None
        row = (
            await self._session.execute(select(notifications).where(notifications.c.id == notification_id))
        ).mappings().first()
        return _row_to_notification(row)
