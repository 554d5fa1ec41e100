"""Views derived from the client's local event list.

Everything here is recomputed from the full list on every render; nothing is
cached or updated incrementally.
"""
from dataclasses import dataclass
from datetime import date

from cpd_calendar.calendar.grid import DayCell, date_key, month_grid
from cpd_calendar.models.attendee import OUTSTANDING_STATUSES
from cpd_calendar.schemas import AttendeeRead, EventRead


@dataclass(frozen=True)
class InviteRow:
    event: EventRead
    attendee: AttendeeRead


def event_date_keys(events: list[EventRead]) -> set[str]:
    """Date keys of every day with at least one event."""
    return {date_key(event.date) for event in events if event.date}


def events_on(events: list[EventRead], day: date | str, type_filter: str = "all") -> list[EventRead]:
    """Events on a single day, optionally limited to "official" or "personal"."""
    key = date_key(day)
    return [
        event
        for event in events
        if date_key(event.date) == key and type_filter in ("all", event.type)
    ]


def outstanding_invites(events: list[EventRead], user_email: str | None) -> list[InviteRow]:
    """Invitations still waiting for the user's answer.

    The user is matched by email, case-insensitively, against each event's
    attendee list.
    """
    if not user_email:
        return []

    email = user_email.lower()
    rows = []
    for event in events:
        for attendee in event.attendees:
            if attendee.email.lower() == email and attendee.status in OUTSTANDING_STATUSES:
                rows.append(InviteRow(event=event, attendee=attendee))
                break
    return rows


def marked_month_grid(events: list[EventRead], year: int, month: int) -> list[tuple[DayCell, bool]]:
    """The 42-cell month grid, each cell paired with whether it has events."""
    keys = event_date_keys(events)
    return [(cell, date_key(cell.date) in keys) for cell in month_grid(year, month)]
