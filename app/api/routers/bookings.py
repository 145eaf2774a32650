import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import Actor, get_actor, get_use_cases, require_admin
from app.api.schemas.bookings import (
    BookingListResponse,
    BookingResponse,
    CancelBookingRequest,
    CompleteRentalRequest,
    ReviewRequest,
    StartRentalRequest,
    SubmitBookingRequest,
)
from app.application.dtos.booking_dto import CompleteRentalDTO, StartRentalDTO, SubmitBookingDTO
from app.domain.entities.booking import CustomerVerification, DocumentHandles, ReferenceContact
from app.infrastructure.db.retry import retry_on_deadlock

logger = logging.getLogger(__name__)

router = APIRouter()

UseCases = Annotated[dict, Depends(get_use_cases)]


def _to_verification(payload: SubmitBookingRequest) -> CustomerVerification:
    data = payload.verification
    return CustomerVerification(
        full_name=data.full_name,
        guardian_name=data.guardian_name,
        guardian_relation=data.guardian_relation,
        residential_address=data.residential_address,
        email=str(data.email),
        mobile=data.mobile,
        occupation=data.occupation,
        reference_1=ReferenceContact(name=data.reference_1.name, mobile=data.reference_1.mobile),
        reference_2=ReferenceContact(name=data.reference_2.name, mobile=data.reference_2.mobile),
        driving_license_number=data.driving_license_number,
        license_expiry=data.license_expiry,
    )


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def submit_booking(
    payload: SubmitBookingRequest,
    use_cases: UseCases,
    actor: Actor = Depends(get_actor),
):
    request = SubmitBookingDTO(
        customer_id=actor.user_id,
        car_id=payload.car_id,
        start_time=payload.start_time,
        duration_hours=payload.duration_hours,
        verification=_to_verification(payload),
        documents=DocumentHandles(
            driving_license=payload.documents.driving_license,
            identity_card=payload.documents.identity_card,
            live_photo=payload.documents.live_photo,
        ),
        deposit_method=payload.deposit_method.value,
        deposit_details=payload.deposit_details,
        with_driver=payload.with_driver,
        home_delivery=payload.home_delivery,
        delivery_address=payload.delivery_address,
        delivery_distance_km=payload.delivery_distance_km,
    )
    booking = await retry_on_deadlock(lambda: use_cases["lifecycle"].submit(request))
    return BookingResponse.model_validate(booking)


@router.get("/bookings/mine", response_model=BookingListResponse)
async def list_my_bookings(use_cases: UseCases, actor: Actor = Depends(get_actor)):
    bookings = await use_cases["queries"].list_customer_bookings(actor.user_id)
    return BookingListResponse(bookings=[BookingResponse.model_validate(b) for b in bookings])


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    use_cases: UseCases,
    status_filter: str | None = Query(default=None, alias="status"),
    admin: Actor = Depends(require_admin),
):
    bookings = await use_cases["queries"].list_bookings(status=status_filter)
    return BookingListResponse(bookings=[BookingResponse.model_validate(b) for b in bookings])


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: str, use_cases: UseCases, actor: Actor = Depends(get_actor)):
    booking = await use_cases["queries"].get_booking(booking_id, user_id=actor.user_id, role=actor.role)
    return BookingResponse.model_validate(booking)


@router.put("/bookings/{booking_id}/review", response_model=BookingResponse)
async def review_booking(
    booking_id: str,
    payload: ReviewRequest,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    lifecycle = use_cases["lifecycle"]
    booking = await retry_on_deadlock(
        lambda: lifecycle.review(booking_id, payload.action, payload.admin_notes)
    )
    logger.info(
        "Booking reviewed",
        extra={"booking_id": booking_id, "action": payload.action, "admin_id": admin.user_id},
    )
    return BookingResponse.model_validate(booking)


@router.put("/bookings/{booking_id}/start", response_model=BookingResponse)
async def start_rental(
    booking_id: str,
    payload: StartRentalRequest,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    lifecycle = use_cases["lifecycle"]
    booking = await retry_on_deadlock(
        lambda: lifecycle.start(
            booking_id,
            StartRentalDTO(
                vehicle_name=payload.vehicle_name,
                vehicle_number=payload.vehicle_number,
                start_odometer=payload.start_odometer,
            ),
        )
    )
    return BookingResponse.model_validate(booking)


@router.put("/bookings/{booking_id}/complete", response_model=BookingResponse)
async def complete_rental(
    booking_id: str,
    payload: CompleteRentalRequest,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    lifecycle = use_cases["lifecycle"]
    booking = await retry_on_deadlock(
        lambda: lifecycle.complete(
            booking_id,
            CompleteRentalDTO(
                end_odometer=payload.end_odometer,
                actual_return_time=payload.actual_return_time,
            ),
        )
    )
    return BookingResponse.model_validate(booking)


@router.put("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    payload: CancelBookingRequest,
    use_cases: UseCases,
    admin: Actor = Depends(require_admin),
):
    lifecycle = use_cases["lifecycle"]
    booking = await retry_on_deadlock(lambda: lifecycle.cancel(booking_id, payload.reason))
    return BookingResponse.model_validate(booking)
