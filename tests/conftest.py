"""Shared test fixtures."""

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from cpd_calendar.calendar.notifications import get_push_sender
from cpd_calendar.client.api import CalendarApi
from cpd_calendar.core.auth import USER_ID_HEADER
from cpd_calendar.core.database import get_session
from cpd_calendar.main import app
from cpd_calendar.models import Attendee, CalendarEvent, User

OWNER_ID = "1"
INVITEE_ID = "42"
OTHER_ID = "7"


class FakePushSender:
    """Push sender that records messages instead of calling Expo."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, token, title, body, data=None):
        if self.fail:
            raise RuntimeError("push service unavailable")
        self.sent.append({"to": token, "title": title, "body": body, "data": data})


def as_user(user_id: str) -> dict:
    """Request headers identifying the caller."""
    return {USER_ID_HEADER: user_id}


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="push_sender")
def push_sender_fixture() -> FakePushSender:
    return FakePushSender()


@pytest.fixture(name="client")
def client_fixture(session: Session, push_sender: FakePushSender):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_push_sender] = lambda: push_sender
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="api_for")
async def api_for_fixture(client: TestClient):
    """Build async API clients bound to the app, one per user id.

    Depends on ``client`` so the same dependency overrides are in place.
    """
    opened: list[CalendarApi] = []

    def factory(user_id: str) -> CalendarApi:
        api = CalendarApi(
            httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app),
                base_url="http://test",
                headers=as_user(user_id),
            )
        )
        opened.append(api)
        return api

    yield factory

    for api in opened:
        await api.aclose()


@pytest.fixture(name="users")
def users_fixture(session: Session) -> dict[str, User]:
    """Create an organizer, an invitee and an unrelated user."""
    users = {
        "owner": User(
            id=OWNER_ID,
            email="owner@x.com",
            name="Olivia Owner",
            device_token="ExponentPushToken[owner]",
        ),
        "invitee": User(
            id=INVITEE_ID,
            email="A@x.com",
            name="Amir Invitee",
            device_token="ExponentPushToken[invitee]",
        ),
        "other": User(id=OTHER_ID, email="other@x.com", name=None, device_token=None),
    }
    for user in users.values():
        session.add(user)
    session.commit()
    return users


@pytest.fixture(name="sample_event")
def sample_event_fixture(session: Session, users) -> CalendarEvent:
    """Create an event owned by the organizer."""
    event = CalendarEvent(
        owner_user_id=OWNER_ID,
        type="official",
        title="Ward Review",
        description="Monthly ward review",
        date="2025-03-10",
        start_time="09:00",
        end_time="10:00",
        location="Ward 4",
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture(name="invited_event")
def invited_event_fixture(session: Session, sample_event: CalendarEvent) -> CalendarEvent:
    """The sample event with the invitee already invited."""
    session.add(Attendee(event_id=sample_event.id, user_id=INVITEE_ID, email="a@x.com"))
    session.commit()
    session.refresh(sample_event)
    return sample_event
