"""Event routes: CRUD, invitations and RSVP."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from cpd_calendar.calendar import events as event_service
from cpd_calendar.calendar.invitations import invite_attendees, respond_to_invite
from cpd_calendar.calendar.notifications import ExpoPushSender, get_push_sender
from cpd_calendar.core.auth import get_current_user_id
from cpd_calendar.core.database import get_session
from cpd_calendar.models import CalendarEvent
from cpd_calendar.schemas import (
    CopyRequest,
    EventCreate,
    EventRead,
    EventType,
    EventUpdate,
    InviteRequest,
    RespondRequest,
)

router = APIRouter(prefix="/events", tags=["events"])


def serialize_event(event: CalendarEvent) -> dict:
    """Render an event, attendees included, as camelCase JSON."""
    return EventRead.model_validate(event).model_dump(mode="json", by_alias=True)


@router.get("")
async def list_events(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    type: EventType | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """
    List the caller's events.

    Returns events the caller owns together with events they have been
    invited to, whatever their RSVP status, sorted by date ascending.
    """
    events, total = event_service.list_events(
        session,
        user_id,
        start_date=start_date,
        end_date=end_date,
        type=type,
        limit=limit,
        offset=offset,
    )
    return {
        "success": True,
        "data": [serialize_event(event) for event in events],
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


@router.get("/{event_id}")
async def get_event(
    event_id: UUID,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Return one event the caller owns or is invited to."""
    event = event_service.get_event(session, event_id, user_id)
    return {"success": True, "data": serialize_event(event)}


@router.post("", status_code=201)
async def create_event(
    data: EventCreate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Create an event owned by the caller. It starts with no attendees."""
    event = event_service.create_event(session, user_id, data)
    return {"success": True, "data": serialize_event(event)}


@router.put("/{event_id}")
async def update_event(
    event_id: UUID,
    patch: EventUpdate,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Update an event.

    Only the owner may update. Fields missing from the body are left as they
    are; the attendee list cannot be changed here.
    """
    event = event_service.update_event(session, event_id, user_id, patch)
    return {"success": True, "data": serialize_event(event)}


@router.delete("/{event_id}")
async def delete_event(
    event_id: UUID,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Delete an event and every invitation attached to it. Owner only."""
    event_service.delete_event(session, event_id, user_id)
    return {"success": True}


@router.post("/{event_id}/copy", status_code=201)
async def copy_event(
    event_id: UUID,
    body: CopyRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Copy an owned event, attendees included, onto another day."""
    event = event_service.copy_event(session, event_id, user_id, body.date)
    return {"success": True, "data": serialize_event(event)}


@router.post("/{event_id}/invite")
async def invite(
    event_id: UUID,
    body: InviteRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    push_sender: ExpoPushSender = Depends(get_push_sender),
):
    """
    Invite users to an owned event.

    Responds with the event and its full attendee list. Notification delivery
    problems are not reported here; the invitations are saved regardless.
    """
    result = await invite_attendees(session, event_id, user_id, body.attendees, push_sender)
    return {"success": True, "data": serialize_event(result.event)}


@router.post("/{event_id}/attendees/{attendee_id}/respond")
async def respond(
    event_id: UUID,
    attendee_id: UUID,
    body: RespondRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    push_sender: ExpoPushSender = Depends(get_push_sender),
):
    """Accept or decline an invitation addressed to the caller."""
    await respond_to_invite(session, event_id, attendee_id, user_id, body.status, push_sender)
    return {"success": True}
