from app.application.interfaces.notification_sink import NotificationSink
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.notification import Notification
from app.domain.errors import NotificationNotFoundError


class Notifications:
    def __init__(self, notification_sink: NotificationSink, transaction_manager: TransactionManager) -> None:
        self._notification_sink = notification_sink
        self._transaction_manager = transaction_manager

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        return await self._notification_sink.list_for_user(user_id, limit=limit)

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        async with self._transaction_manager.start():
            notification = await self._notification_sink.mark_read(notification_id, user_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification
