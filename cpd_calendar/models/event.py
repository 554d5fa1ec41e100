"""Calendar event model.

This module defines the CalendarEvent model: an entry in a practitioner's
calendar, owned by exactly one user and optionally shared with invited
attendees. Dates and times are stored as opaque strings; the service never
combines them or interprets them in a time zone.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from cpd_calendar.models.attendee import Attendee


class CalendarEvent(SQLModel, table=True):
    """A calendar entry owned by one user.

    Only the owner may update, copy, delete or invite people to an event.
    Attendees can see the event in their own list but never mutate it.

    Attributes:
        id: Unique identifier (UUID), assigned by the server.
        owner_user_id: User who created the event and exclusively owns it.
        type: Either "official" or "personal".
        title: Short title shown in the calendar.
        description: Optional free text.
        date: Calendar day as "YYYY-MM-DD".
        end_date: Optional last calendar day for multi-day entries.
        start_time: Free-form time of day, e.g. "09:00". Not validated.
        end_time: Free-form time of day. Not compared with start_time.
        location: Optional venue.
        created_at: When the event was created.
        updated_at: When the event was last changed by its owner.
        attendees: Invitation records attached to this event.
    """
    __tablename__ = "calendar_event"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_user_id: str = Field(index=True)
    type: str
    title: str
    description: str | None = None
    date: str = Field(index=True)
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    attendees: list["Attendee"] = Relationship(
        back_populates="event",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
