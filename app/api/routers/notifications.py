from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import Actor, get_actor, get_use_cases
from app.api.schemas.notifications import NotificationListResponse, NotificationResponse

router = APIRouter()

UseCases = Annotated[dict, Depends(get_use_cases)]


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    use_cases: UseCases,
    limit: int = Query(default=50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
):
    notifications = await use_cases["notifications"].list_for_user(actor.user_id, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications]
    )


@router.put("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    use_cases: UseCases,
    actor: Actor = Depends(get_actor),
):
    notification = await use_cases["notifications"].mark_read(notification_id, actor.user_id)
    return NotificationResponse.model_validate(notification)
