from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal, constr

Money = condecimal(max_digits=12, decimal_places=2)


class DepositMethod(str, Enum):
    BIKE = "bike"
    CASH = "cash"
    ONLINE = "online"


class ReferenceContact(BaseModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    name: constr(strip_whitespace=True, min_length=1)
    mobile: constr(strip_whitespace=True, min_length=5, max_length=20)


class Verification(BaseModel):
    model_config = ConfigDict(extra="forbid", from_attributes=True)

    full_name: constr(strip_whitespace=True, min_length=1)
    guardian_name: str
    guardian_relation: str
    residential_address: str
    email: EmailStr
    mobile: constr(strip_whitespace=True, min_length=5, max_length=20)
    occupation: str
    reference_1: ReferenceContact
    reference_2: ReferenceContact
    driving_license_number: constr(strip_whitespace=True, min_length=1)
    license_expiry: date


class Documents(BaseModel):
    """Handles opacos devueltos por el servicio de archivos."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    driving_license: str | None = None
    identity_card: str | None = None
    live_photo: str | None = None


class SubmitBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    car_id: str
    start_time: datetime
    duration_hours: int
    verification: Verification
    documents: Documents
    deposit_method: DepositMethod = DepositMethod.CASH
    deposit_details: str | None = None
    with_driver: bool = False
    home_delivery: bool = False
    delivery_address: str | None = None
    delivery_distance_km: Decimal = Field(default=Decimal("0"), ge=0)


class ReviewRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    action: str
    admin_notes: str | None = None


class StartRentalRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vehicle_name: str
    vehicle_number: str
    start_odometer: int = Field(ge=0)


class CompleteRentalRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    end_odometer: int = Field(ge=0)
    actual_return_time: datetime | None = None


class CancelBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={Decimal: lambda v: format(v, ".2f")},
    )

    id: str
    customer_id: str
    car_id: str
    start_time: datetime
    end_time: datetime
    duration_hours: int
    status: str
    admin_notes: str | None = None

    verification: Verification
    documents: Documents

    deposit_method: str
    deposit_details: str | None = None
    deposit_amount: Money
    deposit_status: str

    with_driver: bool
    home_delivery: bool
    delivery_address: str | None = None
    delivery_distance_km: Decimal

    base_price: Money
    driver_charge: Money
    delivery_fee: Money
    late_return_fee: Money
    late_hours: int
    total_price: Money

    payment_status: str
    payment_provider: str | None = None
    payment_order_id: str | None = None
    payment_transaction_id: str | None = None
    paid_amount: Money
    refunded_amount: Money
    paid_at: datetime | None = None

    vehicle_name: str | None = None
    vehicle_number: str | None = None
    start_odometer: int | None = None
    end_odometer: int | None = None
    actual_return_time: datetime | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


class RentalWindowResponse(BaseModel):
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    car_id: str
    start: datetime
    end: datetime
    available: bool
    conflicts: list[RentalWindowResponse] = Field(default_factory=list)


class StatsResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_encoders={Decimal: lambda v: format(v, ".2f")},
    )

    total_bookings: int
    by_status: dict[str, int]
    total_cars: int
    available_cars: int
    revenue: Decimal
