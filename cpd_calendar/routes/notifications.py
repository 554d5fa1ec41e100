"""Notification inbox routes."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlmodel import Session

from cpd_calendar.calendar.notifications import list_notifications, mark_read
from cpd_calendar.core.auth import get_current_user_id
from cpd_calendar.core.database import get_session
from cpd_calendar.schemas import NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def inbox(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """List the caller's notifications, newest first."""
    notifications = list_notifications(session, user_id)
    return {
        "success": True,
        "data": [
            NotificationRead.model_validate(n).model_dump(mode="json", by_alias=True)
            for n in notifications
        ],
        "unread": sum(1 for n in notifications if not n.is_read),
    }


@router.post("/{notification_id}/read")
async def read(
    notification_id: UUID,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Mark a notification as read."""
    mark_read(session, notification_id, user_id)
    return {"success": True}
