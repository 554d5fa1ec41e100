"""Tests for notification delivery and push retries."""

import httpx
import pytest
from sqlmodel import Session, select

from cpd_calendar.calendar.notifications import (
    ExpoPushSender,
    is_valid_expo_push_token,
    notify_user,
    retry_failed_pushes,
)
from cpd_calendar.core.config import settings
from cpd_calendar.core.errors import DeliveryFailure
from cpd_calendar.models import Notification, User


def failed_notification(session: Session, user_id: str, attempts: int = 1) -> Notification:
    notification = Notification(
        user_id=user_id,
        title="Event invitation",
        message="You are invited",
        kind="calendar_invite:abc",
        push_status="failed",
        push_attempts=attempts,
    )
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


class TestExpoTokens:
    @pytest.mark.parametrize(
        "token,expected",
        [
            ("ExponentPushToken[abc]", True),
            ("ExpoPushToken[abc]", True),
            ("fcm-token", False),
            (None, False),
        ],
    )
    def test_token_format(self, token, expected):
        """Test recognition of Expo push tokens."""
        assert is_valid_expo_push_token(token) is expected


class TestExpoPushSender:
    async def test_posts_message(self):
        """Test that a push is posted to the configured Expo URL."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"status": "ok", "id": "ticket-1"}})

        sender = ExpoPushSender(url="https://push.test/send", transport=httpx.MockTransport(handler))
        await sender.send("ExponentPushToken[x]", "Title", "Body", {"type": "calendar_invite"})

        assert seen[0].url == "https://push.test/send"
        assert b'"to":"ExponentPushToken[x]"' in seen[0].content.replace(b" ", b"")

    async def test_rejected_ticket_raises(self):
        """Test that an error ticket from Expo is raised."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"data": [{"status": "error", "message": "DeviceNotRegistered"}]}
            )

        sender = ExpoPushSender(transport=httpx.MockTransport(handler))
        with pytest.raises(RuntimeError, match="DeviceNotRegistered"):
            await sender.send("ExponentPushToken[x]", "Title", "Body")

    async def test_http_error_raises(self):
        """Test that an HTTP error from Expo is raised."""
        sender = ExpoPushSender(
            transport=httpx.MockTransport(lambda request: httpx.Response(503))
        )
        with pytest.raises(httpx.HTTPStatusError):
            await sender.send("ExponentPushToken[x]", "Title", "Body")


class TestNotifyUser:
    async def test_failed_push_keeps_notification(self, session, users, push_sender):
        """Test that the in-app notification survives a failed push."""
        push_sender.fail = True

        with pytest.raises(DeliveryFailure):
            await notify_user(session, "42", "Title", "Body", "calendar_invite:abc", push_sender)

        notification = session.exec(select(Notification)).one()
        assert notification.push_status == "failed"

    async def test_push_disabled(self, session, users, push_sender, monkeypatch):
        """Test that nothing is pushed when push is disabled."""
        monkeypatch.setattr(settings, "push_enabled", False)

        notification = await notify_user(
            session, "42", "Title", "Body", "calendar_invite:abc", push_sender
        )

        assert notification.push_status == "skipped"
        assert push_sender.sent == []


class TestRetryFailedPushes:
    async def test_retries_until_sent(self, session, users, push_sender):
        """Test that a failed push is retried and marked sent."""
        notification = failed_notification(session, "42")

        stats = await retry_failed_pushes(session, push_sender)

        assert stats == {"retried": 1, "sent": 1, "failed": 0, "skipped": 0}
        session.refresh(notification)
        assert notification.push_status == "sent"
        assert notification.push_attempts == 2

    async def test_gives_up_after_max_attempts(self, session, users, push_sender, monkeypatch):
        """Test that retries stop at the attempt limit."""
        monkeypatch.setattr(settings, "push_max_attempts", 2)
        push_sender.fail = True
        notification = failed_notification(session, "42")

        first = await retry_failed_pushes(session, push_sender)
        second = await retry_failed_pushes(session, push_sender)

        assert first["failed"] == 1
        assert second["retried"] == 0
        session.refresh(notification)
        assert notification.push_attempts == 2
        assert notification.push_status == "failed"

    async def test_user_without_token_is_skipped(self, session: Session, users, push_sender):
        """Test that a recipient without a device is skipped."""
        notification = failed_notification(session, "7")

        stats = await retry_failed_pushes(session, push_sender)

        assert stats["skipped"] == 1
        session.refresh(notification)
        assert notification.push_status == "skipped"

    async def test_token_removed_since_failure(self, session: Session, users, push_sender):
        """Test that a token removed after the failure stops the retry."""
        user = session.get(User, "42")
        user.device_token = None
        session.add(user)
        session.commit()
        failed_notification(session, "42")

        stats = await retry_failed_pushes(session, push_sender)

        assert stats["skipped"] == 1
        assert push_sender.sent == []
