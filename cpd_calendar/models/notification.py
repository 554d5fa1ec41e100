"""In-app notification model.

Every invitation and every accepted RSVP leaves a Notification row for the
recipient. The row is written before any push delivery is attempted, so the
in-app inbox stays complete even when the push channel fails.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

PUSH_SKIPPED = "skipped"  # no usable device token, or push disabled
PUSH_PENDING = "pending"
PUSH_SENT = "sent"
PUSH_FAILED = "failed"


class Notification(SQLModel, table=True):
    """A message shown in a user's notification inbox.

    Attributes:
        id: Unique identifier (UUID).
        user_id: Recipient.
        title: Short heading.
        message: Body text.
        kind: Routing key for the mobile client, e.g.
            "calendar_invite:<event id>" or "calendar_response:<event id>".
        is_read: Set when the recipient opens the notification.
        push_status: "skipped", "pending", "sent" or "failed".
        push_attempts: Number of push deliveries attempted so far.
        created_at: When the notification was recorded.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    message: str
    kind: str
    is_read: bool = Field(default=False)
    push_status: str = Field(default=PUSH_PENDING, index=True)
    push_attempts: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
