"""Attendee model for event invitations.

An Attendee is the per-user invitation record attached to a calendar event.
It carries the RSVP state: "invited" until the invited user answers, then
"accepted" or "declined".
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cpd_calendar.models.event import CalendarEvent

INVITED = "invited"
PENDING = "pending"  # legacy synonym of "invited"
ACCEPTED = "accepted"
DECLINED = "declined"

OUTSTANDING_STATUSES = frozenset({INVITED, PENDING})
RESPONSE_STATUSES = frozenset({ACCEPTED, DECLINED})


class Attendee(SQLModel, table=True):
    """A user invited to an event.

    Attributes:
        id: Unique identifier (UUID), used by the RSVP endpoint.
        event_id: Foreign key to the parent CalendarEvent.
        user_id: The invited user. Unique per event.
        email: Invitee email, copied at invite time.
        status: "invited", "accepted" or "declined".
        created_at: When the invitation was first created.
        updated_at: When the status last changed.
        event: Reference to the parent CalendarEvent.
    """
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_attendee_event_user"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_id: UUID = Field(foreign_key="calendar_event.id", ondelete="CASCADE", index=True)
    user_id: str = Field(index=True)
    email: str
    status: str = Field(default=INVITED)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationship
    event: Optional["CalendarEvent"] = Relationship(back_populates="attendees")
