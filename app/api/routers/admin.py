from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import Actor, get_use_cases, require_admin
from app.api.schemas.bookings import StatsResponse

router = APIRouter()


@router.get("/admin/stats", response_model=StatsResponse)
async def booking_stats(
    use_cases: Annotated[dict, Depends(get_use_cases)],
    admin: Actor = Depends(require_admin),
):
    stats = await use_cases["queries"].stats()
    return StatsResponse.model_validate(stats)
