"""Event invitations and RSVP.

An Attendee moves through a small state machine:

    invited --> accepted
    invited --> declined

Only the event owner can invite, and only the invited user can respond.
Responses overwrite the stored status unconditionally, so the last response
to arrive wins and repeating a response is harmless.

Inviting is two-phase per invitee: the Attendee row is committed first, then
the invitee is notified on a best-effort basis. A notification failure is
logged and collected on the InviteResult; it never undoes the invitation.
"""
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from sqlmodel import Session, select

from cpd_calendar.calendar.events import get_owned_event
from cpd_calendar.calendar.notifications import notify_user
from cpd_calendar.core.errors import DeliveryFailure, NotAuthorized, NotFound, ValidationError
from cpd_calendar.models import Attendee, CalendarEvent, User
from cpd_calendar.models.attendee import ACCEPTED, INVITED, RESPONSE_STATUSES
from cpd_calendar.schemas import AttendeeInvite

logger = logging.getLogger(__name__)


@dataclass
class InviteResult:
    """Outcome of an invite call.

    Attributes:
        event: The event, refreshed so its attendee list is current.
        attendees: The attendee records created or reset by this call.
        delivery_failures: Notifications that could not be delivered.
    """
    event: CalendarEvent
    attendees: list[Attendee] = field(default_factory=list)
    delivery_failures: list[DeliveryFailure] = field(default_factory=list)


def _display_name(user: User | None, fallback: str | None = None) -> str:
    if user and user.name:
        return user.name
    if user and user.email:
        return user.email
    return fallback or "Someone"


def _resolve_invitees(
    session: Session,
    event: CalendarEvent,
    invitees: list[AttendeeInvite],
) -> dict[str, str]:
    """Validate the invite list and map each user id to the email to store.

    Repeated user ids collapse into one entry; the last email given wins.
    """
    resolved: dict[str, str] = {}
    for invitee in invitees:
        user_id = invitee.user_id.strip()
        if user_id == event.owner_user_id:
            raise ValidationError("The event owner cannot be invited to their own event")

        email = (invitee.email or "").strip()
        if not email:
            user = session.get(User, user_id)
            email = user.email if user else ""
        if not email:
            raise ValidationError(f"No email known for invitee {user_id}")

        resolved[user_id] = email
    return resolved


def _persist_invitation(
    session: Session,
    event: CalendarEvent,
    user_id: str,
    email: str,
) -> Attendee:
    """Create the invitation, or reset an existing one back to invited."""
    attendee = session.exec(
        select(Attendee)
        .where(Attendee.event_id == event.id)
        .where(Attendee.user_id == user_id)
    ).first()

    if attendee:
        logger.info(
            f"Re-inviting user {user_id} to event {event.id} (was {attendee.status})"
        )
        attendee.status = INVITED
        attendee.email = email
        attendee.updated_at = datetime.now(UTC)
    else:
        attendee = Attendee(event_id=event.id, user_id=user_id, email=email, status=INVITED)

    session.add(attendee)
    session.commit()
    session.refresh(attendee)
    return attendee


async def invite_attendees(
    session: Session,
    event_id: UUID,
    requesting_user_id: str,
    invitees: list[AttendeeInvite],
    push_sender,
) -> InviteResult:
    """
    Invite users to an event owned by ``requesting_user_id``.

    Every invitee ends up with exactly one Attendee record in the invited
    state, whether or not their notification could be delivered.
    """
    event = get_owned_event(session, event_id, requesting_user_id)
    if not invitees:
        raise ValidationError("At least one attendee is required")

    resolved = _resolve_invitees(session, event, invitees)
    organizer_name = _display_name(session.get(User, event.owner_user_id))
    title = "Event invitation"
    message = f'{organizer_name} has invited you to join "{event.title}" on {event.date}'
    kind = f"calendar_invite:{event.id}"

    result = InviteResult(event=event)
    for user_id, email in resolved.items():
        result.attendees.append(_persist_invitation(session, event, user_id, email))

        try:
            await notify_user(session, user_id, title, message, kind, push_sender)
        except DeliveryFailure as e:
            logger.warning(f"Invite to event {event_id} saved but not delivered: {e}")
            result.delivery_failures.append(e)

    session.refresh(event)
    logger.info(
        f"Invited {len(result.attendees)} attendees to event {event_id} "
        f"({len(result.delivery_failures)} delivery failures)"
    )
    return result


async def respond_to_invite(
    session: Session,
    event_id: UUID,
    attendee_id: UUID,
    responding_user_id: str,
    status: str,
    push_sender,
) -> Attendee:
    """
    Record the invited user's RSVP.

    The responder must be the invited user, matched by user id or, failing
    that, by email compared case-insensitively. When an invitation is newly
    accepted the organizer is notified on a best-effort basis.
    """
    if status not in RESPONSE_STATUSES:
        raise ValidationError(f"Invalid status {status!r}, expected accepted or declined")

    attendee = session.get(Attendee, attendee_id)
    if not attendee or attendee.event_id != event_id:
        raise NotFound("Invite not found")

    responder = session.get(User, responding_user_id)
    if attendee.user_id != responding_user_id:
        if not responder or responder.email.lower() != attendee.email.lower():
            raise NotAuthorized("Not authorized to respond to this invite")

    previous_status = attendee.status
    attendee.status = status
    attendee.updated_at = datetime.now(UTC)
    session.add(attendee)
    session.commit()
    session.refresh(attendee)

    logger.info(f"Attendee {attendee_id} on event {event_id}: {previous_status} -> {status}")

    if status == ACCEPTED and previous_status != ACCEPTED:
        event = attendee.event
        responder_name = _display_name(responder, fallback=attendee.email)
        try:
            await notify_user(
                session,
                event.owner_user_id,
                "Event Join Request Accepted",
                f'{responder_name} has accepted your invitation to join "{event.title}" on {event.date}',
                f"calendar_response:{event.id}",
                push_sender,
            )
        except DeliveryFailure as e:
            logger.warning(f"Could not notify organizer of event {event_id}: {e}")

    return attendee
