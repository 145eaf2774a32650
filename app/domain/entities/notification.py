"""Entidad Notification - aviso append-only emitido por el ciclo de vida."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.constants import NOTIFICATION_GENERAL


@dataclass
class Notification:
    id: str
    user_id: str
    message: str
    category: str = NOTIFICATION_GENERAL
    booking_id: str | None = None
    read: bool = False
    created_at: datetime | None = None
