"""Calendar event persistence and queries.

Every read is scoped to the requesting user: a user sees the events they own
plus the events they hold an invitation for, whatever its RSVP status.
Every write is owner-only.
"""
import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from cpd_calendar.core.errors import NotAuthorized, NotFound, ValidationError
from cpd_calendar.models import Attendee, CalendarEvent
from cpd_calendar.schemas import EventCreate, EventUpdate, validate_day

logger = logging.getLogger(__name__)


def _parse_day(value: str) -> str:
    try:
        return validate_day(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _visible_to(user_id: str):
    """Filter clause for events owned by, or shared with, ``user_id``."""
    invited_event_ids = select(Attendee.event_id).where(Attendee.user_id == user_id)
    return or_(
        CalendarEvent.owner_user_id == user_id,
        col(CalendarEvent.id).in_(invited_event_ids),
    )


def list_events(
    session: Session,
    user_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    type: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[CalendarEvent], int]:
    """
    List the events visible to a user, oldest day first.

    The owned/invited union is built first; the date range (inclusive) and
    type filters narrow it afterwards. Returns the requested page and the
    total number of matching events.
    """
    statement = select(CalendarEvent).where(_visible_to(user_id))

    if start_date:
        statement = statement.where(CalendarEvent.date >= _parse_day(start_date))
    if end_date:
        statement = statement.where(CalendarEvent.date <= _parse_day(end_date))
    if type:
        statement = statement.where(CalendarEvent.type == type)

    total = session.exec(
        select(func.count()).select_from(statement.subquery())
    ).one()

    statement = statement.order_by(
        CalendarEvent.date,
        CalendarEvent.start_time,
        CalendarEvent.created_at,
    ).offset(offset)
    if limit is not None:
        statement = statement.limit(limit)

    return list(session.exec(statement).all()), total


def get_event(session: Session, event_id: UUID, user_id: str) -> CalendarEvent:
    """Return an event the user owns or is invited to.

    Events the user cannot see are reported as missing rather than forbidden.
    """
    event = session.exec(
        select(CalendarEvent)
        .where(CalendarEvent.id == event_id)
        .where(_visible_to(user_id))
    ).first()
    if not event:
        raise NotFound("Calendar event not found")
    return event


def get_owned_event(session: Session, event_id: UUID, user_id: str) -> CalendarEvent:
    """Return an event for an owner-only operation.

    Raises NotFound if the id does not resolve and NotAuthorized if the event
    belongs to someone else.
    """
    event = session.get(CalendarEvent, event_id)
    if not event:
        raise NotFound("Calendar event not found")
    if event.owner_user_id != user_id:
        raise NotAuthorized("Only the event owner can modify this event")
    return event


def create_event(session: Session, owner_user_id: str, data: EventCreate) -> CalendarEvent:
    """Persist a new event owned by ``owner_user_id``."""
    if not owner_user_id:
        raise ValidationError("Missing userId")

    event = CalendarEvent(owner_user_id=owner_user_id, **data.model_dump())
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"Created event {event.id} ({event.type}) for user {owner_user_id}")
    return event


def update_event(
    session: Session,
    event_id: UUID,
    requesting_user_id: str,
    patch: EventUpdate,
) -> CalendarEvent:
    """Apply the fields present in ``patch``. Attendees are left untouched."""
    event = get_owned_event(session, event_id, requesting_user_id)

    for field, value in patch.model_dump(exclude_unset=True).items():
        setattr(event, field, value)
    event.updated_at = datetime.now(UTC)

    session.add(event)
    session.commit()
    session.refresh(event)
    return event


def delete_event(session: Session, event_id: UUID, requesting_user_id: str) -> None:
    """Delete an event together with all of its attendee records."""
    event = get_owned_event(session, event_id, requesting_user_id)
    attendee_count = len(event.attendees)

    session.delete(event)
    session.commit()

    logger.info(f"Deleted event {event_id} and {attendee_count} attendee records")


def copy_event(
    session: Session,
    event_id: UUID,
    requesting_user_id: str,
    new_date: str,
) -> CalendarEvent:
    """
    Duplicate an owned event onto another day.

    All fields except the date are copied, and every attendee record is
    copied with its current status. No notifications are sent for the copy.
    """
    source = get_owned_event(session, event_id, requesting_user_id)
    new_date = _parse_day(new_date)

    copy = CalendarEvent(
        owner_user_id=source.owner_user_id,
        type=source.type,
        title=source.title,
        description=source.description,
        date=new_date,
        end_date=source.end_date,
        start_time=source.start_time,
        end_time=source.end_time,
        location=source.location,
    )
    session.add(copy)
    session.flush()

    for attendee in source.attendees:
        session.add(
            Attendee(
                event_id=copy.id,
                user_id=attendee.user_id,
                email=attendee.email,
                status=attendee.status,
            )
        )

    session.commit()
    session.refresh(copy)

    logger.info(f"Copied event {event_id} to {copy.id} on {new_date}")
    return copy
