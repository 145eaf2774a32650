"""DTOs para reservas."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from app.domain.constants import DEPOSIT_METHOD_CASH
from app.domain.entities.booking import CustomerVerification, DocumentHandles


@dataclass
class SubmitBookingDTO:
    """DTO para enviar una solicitud de reserva."""

    customer_id: str
    car_id: str
    start_time: datetime
    duration_hours: int
    verification: CustomerVerification
    documents: DocumentHandles

    # Depósito
    deposit_method: str = DEPOSIT_METHOD_CASH
    deposit_details: str | None = None

    # Extras
    with_driver: bool = False
    home_delivery: bool = False
    delivery_address: str | None = None
    delivery_distance_km: Decimal = Decimal("0")


@dataclass
class StartRentalDTO:
    """Datos de la entrega del vehículo al cliente."""

    vehicle_name: str
    vehicle_number: str
    start_odometer: int


@dataclass
class CompleteRentalDTO:
    """Datos de la devolución; sin `actual_return_time` se usa la hora actual."""

    end_odometer: int
    actual_return_time: datetime | None = None


@dataclass
class BookingStatsDTO:
    """Resumen para el panel de administración."""

    total_bookings: int
    by_status: dict[str, int] = field(default_factory=dict)
    total_cars: int = 0
    available_cars: int = 0
    revenue: Decimal = Decimal("0")
