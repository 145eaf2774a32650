from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import AvailabilityResponse, RentalWindowResponse

router = APIRouter()


@router.get("/cars/{car_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    car_id: str,
    use_cases: Annotated[dict, Depends(get_use_cases)],
    start: datetime = Query(...),
    end: datetime = Query(...),
):
    conflicts = await use_cases["availability"].list_conflicts(car_id, start, end)
    return AvailabilityResponse(
        car_id=car_id,
        start=start,
        end=end,
        available=not conflicts,
        conflicts=[RentalWindowResponse(start=w.start, end=w.end) for w in conflicts],
    )
