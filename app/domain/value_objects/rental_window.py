"""Value Object RentalWindow - ventana de renta semiabierta [start, end)."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def ensure_utc(value: datetime) -> datetime:
    """Normaliza un datetime a UTC; los valores sin zona se asumen UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class RentalWindow:
    """
    Value Object inmutable que representa la ventana ocupada por una renta.

    El intervalo es semiabierto: el instante `end` no cuenta como ocupado,
    de modo que una renta que termina a las 10:00 no choca con otra que
    empieza a las 10:00.

    Attributes:
        start: Fecha/hora de entrega del auto.
        end: Fecha/hora programada de devolución.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.start >= self.end:
            raise ValueError(f"start debe ser anterior a end: {self.start} >= {self.end}")

    @property
    def duration(self) -> timedelta:
        """Retorna la duración de la ventana."""
        return self.end - self.start

    def overlaps_with(self, other: "RentalWindow") -> bool:
        """Dos ventanas semiabiertas se superponen si start_a < end_b y end_a > start_b."""
        return self.start < other.end and self.end > other.start

    def late_hours(self, actual_return: datetime) -> int:
        """
        Horas de retraso de una devolución respecto al fin programado.

        Regla de negocio: cualquier fracción de hora cuenta como hora completa,
        pero un retraso exacto de 2h0m son 2 horas, no 3.
        Devolver a tiempo o antes siempre da 0.
        """
        delay = ensure_utc(actual_return) - self.end
        if delay <= timedelta(0):
            return 0
        whole_hours, remainder = divmod(delay, timedelta(hours=1))
        return whole_hours + (1 if remainder else 0)

    def __str__(self) -> str:
        return f"{self.start.isoformat()} -> {self.end.isoformat()}"

    @classmethod
    def from_duration(cls, start: datetime, duration_hours: int) -> "RentalWindow":
        """Factory method para crear desde el inicio y la duración en horas."""
        start = ensure_utc(start)
        return cls(start=start, end=start + timedelta(hours=duration_hours))
