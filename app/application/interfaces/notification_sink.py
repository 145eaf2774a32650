"""Interface NotificationSink - Puerto hacia el buzón de notificaciones."""

from abc import ABC, abstractmethod

from app.domain.constants import NOTIFICATION_GENERAL
from app.domain.entities.notification import Notification


class NotificationSink(ABC):
    """
    Buzón append-only de avisos para clientes y administradores.

    La entrega (email, push) es responsabilidad de otro servicio.
    """

    @abstractmethod
    async def emit(
        self,
        user_id: str,
        message: str,
        category: str = NOTIFICATION_GENERAL,
        booking_id: str | None = None,
    ) -> Notification:
        raise NotImplementedError

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        """Últimas notificaciones del usuario, más recientes primero."""
        raise NotImplementedError

    @abstractmethod
    async def mark_read(self, notification_id: str, user_id: str) -> Notification | None:
        """
        Marca una notificación como leída.

        Returns:
            La notificación, o None si no existe o es de otro usuario.
        """
        raise NotImplementedError
