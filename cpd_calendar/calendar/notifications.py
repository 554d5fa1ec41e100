"""In-app notifications and Expo push delivery.

Delivery is two-phase. The in-app Notification row is committed first; the
push to the recipient's device is attempted afterwards. Any failure in either
phase is reported as a DeliveryFailure, which callers treat as non-fatal.
"""
import logging
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from cpd_calendar.core.config import settings
from cpd_calendar.core.errors import DeliveryFailure, NotFound
from cpd_calendar.models import Notification, User
from cpd_calendar.models.notification import PUSH_FAILED, PUSH_PENDING, PUSH_SENT, PUSH_SKIPPED

logger = logging.getLogger(__name__)

EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


def is_valid_expo_push_token(token: str | None) -> bool:
    """Check that a device token has the Expo push token format."""
    return isinstance(token, str) and token.startswith(EXPO_TOKEN_PREFIXES)


class ExpoPushSender:
    """Send push notifications through Expo's push API."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or settings.expo_push_url
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds
        self.transport = transport

    async def send(self, token: str, title: str, body: str, data: dict | None = None) -> None:
        """Deliver one message. Raises on transport errors and rejected tickets."""
        message = {
            "to": token,
            "title": title,
            "body": body,
            "sound": "default",
            "priority": "high",
        }
        if data:
            message["data"] = data

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.url,
                json=message,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            ticket = response.json().get("data") or {}

        # Expo answers a single message with a single ticket object
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        if ticket.get("status") == "error":
            raise RuntimeError(ticket.get("message") or "Expo rejected the push ticket")


def get_push_sender() -> ExpoPushSender:
    """Dependency for getting the push sender."""
    return ExpoPushSender()


def _push_payload(kind: str) -> dict:
    """Build the push data payload from a notification kind."""
    push_type, _, event_id = kind.partition(":")
    payload = {"type": push_type}
    if event_id:
        payload["eventId"] = event_id
    return payload


def _can_push(user: User | None) -> bool:
    return settings.push_enabled and user is not None and is_valid_expo_push_token(user.device_token)


async def _push(session: Session, notification: Notification, token: str, push_sender) -> None:
    """Attempt one push delivery and record the outcome on the notification."""
    notification.push_attempts += 1
    try:
        await push_sender.send(
            token,
            notification.title,
            notification.message,
            _push_payload(notification.kind),
        )
    except Exception as e:
        notification.push_status = PUSH_FAILED
        session.add(notification)
        session.commit()
        raise DeliveryFailure(notification.user_id, f"push failed: {e}") from e

    notification.push_status = PUSH_SENT
    session.add(notification)
    session.commit()


async def notify_user(
    session: Session,
    user_id: str,
    title: str,
    message: str,
    kind: str,
    push_sender,
) -> Notification:
    """
    Record an in-app notification for a user and push it to their device.

    Raises DeliveryFailure if the notification could not be stored or the
    push was rejected. A stored notification is kept even when the push fails.
    """
    user = session.get(User, user_id)
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        kind=kind,
        push_status=PUSH_PENDING if _can_push(user) else PUSH_SKIPPED,
    )
    try:
        session.add(notification)
        session.commit()
        session.refresh(notification)
    except SQLAlchemyError as e:
        session.rollback()
        raise DeliveryFailure(user_id, f"could not record notification: {e}") from e

    if notification.push_status == PUSH_PENDING:
        await _push(session, notification, user.device_token, push_sender)

    return notification


async def retry_failed_pushes(session: Session, push_sender) -> dict:
    """
    Re-attempt push deliveries that failed earlier.

    Notifications are retried until ``settings.push_max_attempts`` is reached.
    A recipient who no longer has a valid device token is marked skipped.

    Returns dict with retry statistics.
    """
    stats = {"retried": 0, "sent": 0, "failed": 0, "skipped": 0}

    statement = (
        select(Notification)
        .where(Notification.push_status == PUSH_FAILED)
        .where(Notification.push_attempts < settings.push_max_attempts)
        .order_by(Notification.created_at)
    )
    for notification in session.exec(statement).all():
        user = session.get(User, notification.user_id)
        if not _can_push(user):
            notification.push_status = PUSH_SKIPPED
            session.add(notification)
            session.commit()
            stats["skipped"] += 1
            continue

        stats["retried"] += 1
        try:
            await _push(session, notification, user.device_token, push_sender)
            stats["sent"] += 1
        except DeliveryFailure as e:
            logger.warning(f"Push retry failed for notification {notification.id}: {e}")
            stats["failed"] += 1

    return stats


def list_notifications(session: Session, user_id: str) -> list[Notification]:
    """Return a user's notifications, newest first."""
    statement = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(col(Notification.created_at).desc())
    )
    return list(session.exec(statement).all())


def mark_read(session: Session, notification_id: UUID, user_id: str) -> Notification:
    """Mark one of the user's notifications as read."""
    notification = session.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFound("Notification not found")

    notification.is_read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification
