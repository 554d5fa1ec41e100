"""User directory entries.

Accounts are owned by the external identity service. This table keeps the
fields the calendar needs: the email used for invitations and RSVP checks,
a display name for notification text, and the Expo push token of the user's
device.
"""

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """A practitioner known to the calendar.

    Attributes:
        id: Identifier issued by the identity service.
        email: Login email; compared case-insensitively.
        name: Display name used in notification messages.
        device_token: Expo push token of the user's current device, if any.
    """
    __tablename__ = "app_user"

    id: str = Field(primary_key=True)
    email: str = Field(index=True)
    name: str | None = None
    device_token: str | None = None
