"""Implementación in-memory del buzón de notificaciones."""

import copy

from app.application.interfaces.clock import Clock, SystemClock
from app.application.interfaces.id_generator import IdGenerator, UUIDIdGenerator
from app.application.interfaces.notification_sink import NotificationSink
from app.domain.constants import NOTIFICATION_GENERAL
from app.domain.entities.notification import Notification


class InMemoryNotificationSink(NotificationSink):
    def __init__(self, clock: Clock | None = None, id_generator: IdGenerator | None = None) -> None:
        self._clock = clock or SystemClock()
        self._id_generator = id_generator or UUIDIdGenerator()
        self.notifications: list[Notification] = []

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
        self.notifications.append(notification)
        return copy.copy(notification)

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        mine = [n for n in self.notifications if n.user_id == user_id]
        return [copy.copy(n) for n in reversed(mine)][:limit]

    async def mark_read(self, notification_id: str, user_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id and notification.user_id == user_id:
                notification.read = True
                return copy.copy(notification)
        return None
