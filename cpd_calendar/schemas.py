"""Request and response bodies for the calendar API.

The mobile client speaks camelCase JSON, so every schema uses a camelCase
alias generator while still accepting snake_case field names from Python
callers.
"""

from datetime import date as Date
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EventType = Literal["official", "personal"]
ResponseStatus = Literal["accepted", "declined"]


def validate_day(value: str) -> str:
    """Return ``value`` as a canonical "YYYY-MM-DD" string.

    Accepts a full ISO timestamp as well and keeps only its calendar day,
    since clients sometimes send ``2025-03-10T00:00:00.000Z``.
    """
    text = str(value).strip()
    day = text.split("T", 1)[0]
    try:
        return Date.fromisoformat(day).isoformat()
    except ValueError:
        raise ValueError(f"Invalid date format: {value!r}, expected YYYY-MM-DD") from None


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EventCreate(CamelModel):
    """Body of ``POST /events``."""

    type: EventType
    title: str = Field(min_length=1)
    description: str | None = None
    date: str
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return validate_day(value)

    @field_validator("end_date")
    @classmethod
    def _check_end_date(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_day(value)


class EventUpdate(CamelModel):
    """Body of ``PUT /events/{id}``. Only the fields sent are applied."""

    type: EventType | None = None
    title: str | None = None
    description: str | None = None
    date: str | None = None
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None

    @field_validator("type", "title", "date")
    @classmethod
    def _required_not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be cleared")
        return value

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return validate_day(value)

    @field_validator("end_date")
    @classmethod
    def _check_end_date(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_day(value)


class AttendeeInvite(CamelModel):
    """One invitee in ``POST /events/{id}/invite``."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    user_id: str = Field(min_length=1)
    email: str | None = None


class InviteRequest(CamelModel):
    attendees: list[AttendeeInvite] = Field(min_length=1)


class RespondRequest(CamelModel):
    status: ResponseStatus


class CopyRequest(CamelModel):
    date: str

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return validate_day(value)


class AttendeeRead(CamelModel):
    id: UUID
    user_id: str
    email: str
    status: str
    created_at: datetime
    updated_at: datetime


class EventRead(CamelModel):
    """A calendar event as returned by the API."""

    id: UUID
    owner_user_id: str
    type: EventType
    title: str
    description: str | None = None
    date: str
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    created_at: datetime
    updated_at: datetime
    attendees: list[AttendeeRead] = Field(default_factory=list)


class NotificationRead(CamelModel):
    id: UUID
    title: str
    message: str
    kind: str
    is_read: bool
    created_at: datetime
