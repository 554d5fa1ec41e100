"""Client-side event cache kept in step with the server.

The store holds the signed-in user's event list in memory. ``login`` binds it
to a user and loads the list, ``logout`` closes the connection and clears it.
Reconciliation rules:

- refresh replaces the whole list with the server's answer;
- create, copy, update and delete patch the list only after the server
  confirmed the change, using the record the server returned;
- invite and respond always trigger a full refresh, so attendee lists shown
  to the user are the server's, not a local guess.

Overlapping refreshes are not cancelled. Whichever response arrives last
becomes the local list. A response that arrives after the user signed out,
or after another user signed in, is dropped.
"""
import logging
from collections.abc import Callable
from datetime import date
from uuid import UUID

from cpd_calendar.calendar.grid import DayCell
from cpd_calendar.client import views
from cpd_calendar.client.api import ApiError, CalendarApi
from cpd_calendar.schemas import AttendeeInvite, EventCreate, EventRead, EventUpdate

logger = logging.getLogger(__name__)

MessageSink = Callable[[str, str], None]
Connector = Callable[[str], CalendarApi]


def _log_message(level: str, text: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, f"[{level}] {text}")


class EventStore:
    """In-memory event list for the signed-in user.

    Attributes:
        events: The last list confirmed by the server.
        user_id: Id of the signed-in user, sent with every request.
        user_email: Email of the signed-in user, used to find their invites.
    """

    def __init__(
        self,
        connect: Connector = CalendarApi.connect,
        on_message: MessageSink | None = None,
    ):
        self._connect = connect
        self._on_message = on_message if on_message is not None else _log_message
        self._api: CalendarApi | None = None
        self._session = 0
        self._loads = 0
        self._refreshes = 0
        self._filters: dict = {}
        self.events: list[EventRead] = []
        self.user_id: str | None = None
        self.user_email: str | None = None

    @property
    def api(self) -> CalendarApi:
        if self._api is None:
            raise RuntimeError("No user is signed in")
        return self._api

    @property
    def is_loading(self) -> bool:
        """True while an initial load is in flight."""
        return self._loads > 0

    @property
    def is_refreshing(self) -> bool:
        """True while a background refresh is in flight."""
        return self._refreshes > 0

    # Lifecycle

    async def login(self, user_id: str, user_email: str) -> None:
        """Start a session for the user and load their events.

        Any previous session on this store is closed first.
        """
        await self.logout()
        self._api = self._connect(user_id)
        self.user_id = user_id
        self.user_email = user_email
        await self.refresh(show_loading=True)

    async def logout(self) -> None:
        """Forget the signed-in user and everything loaded for them."""
        self._session += 1
        self._loads = 0
        self._refreshes = 0
        self._filters = {}
        self.events = []
        self.user_id = None
        self.user_email = None

        api, self._api = self._api, None
        if api is not None:
            await api.aclose()

    # Server reads

    async def refresh(self, show_loading: bool = False, **filters) -> None:
        """
        Replace the local list with the server's.

        Filters (start_date, end_date, type) are remembered and reused by the
        refreshes that follow an invite or an RSVP. On failure the previous
        list is kept; network failures are not reported to the user.
        """
        api = self.api
        if filters:
            self._filters = filters

        session = self._session
        if show_loading:
            self._loads += 1
        else:
            self._refreshes += 1

        try:
            events = await api.list_events(**self._filters)
        except ApiError as e:
            if session != self._session:
                return
            logger.error(f"Error fetching calendar events: {e.message}")
            if not e.is_network_error:
                self._on_message("error", e.message or "Failed to load calendar events")
            return
        finally:
            if session == self._session:
                if show_loading:
                    self._loads -= 1
                else:
                    self._refreshes -= 1

        if session != self._session:
            logger.debug("Dropping events fetched for a session that has ended")
            return
        self.events = events

    # Mutations

    def _failed(self, action: str, error: ApiError) -> None:
        logger.error(f"Error trying to {action}: {error.message}")
        self._on_message("error", error.message or f"Failed to {action}")

    async def create(self, data: EventCreate) -> EventRead:
        try:
            event = await self.api.create_event(data)
        except ApiError as e:
            self._failed("create event", e)
            raise

        self.events = [*self.events, event]
        self._on_message("success", "Event created successfully")
        return event

    async def copy(self, event_id: UUID, date: str) -> EventRead:
        try:
            event = await self.api.copy_event(event_id, date)
        except ApiError as e:
            self._failed("copy event", e)
            raise

        self.events = [*self.events, event]
        self._on_message("success", "Event copied")
        return event

    async def update(self, event_id: UUID, patch: EventUpdate) -> EventRead:
        try:
            updated = await self.api.update_event(event_id, patch)
        except ApiError as e:
            self._failed("update event", e)
            raise

        self.events = [updated if event.id == event_id else event for event in self.events]
        self._on_message("success", "Event updated successfully")
        return updated

    async def delete(self, event_id: UUID) -> None:
        try:
            await self.api.delete_event(event_id)
        except ApiError as e:
            self._failed("delete event", e)
            raise

        self.events = [event for event in self.events if event.id != event_id]
        self._on_message("success", "Event deleted successfully")

    async def invite(self, event_id: UUID, attendees: list[AttendeeInvite]) -> EventRead:
        """Send invitations, then reload everything from the server."""
        try:
            event = await self.api.invite(event_id, attendees)
        except ApiError as e:
            self._failed("invite attendees", e)
            raise

        self._on_message("success", "Invites sent")
        await self.refresh()
        return event

    async def respond(self, event_id: UUID, attendee_id: UUID, status: str) -> None:
        """Answer an invitation, then reload everything from the server."""
        try:
            await self.api.respond(event_id, attendee_id, status)
        except ApiError as e:
            self._failed("respond to invite", e)
            raise

        await self.refresh()

    # Derived views

    @property
    def event_date_keys(self) -> set[str]:
        return views.event_date_keys(self.events)

    @property
    def outstanding_invites(self) -> list[views.InviteRow]:
        return views.outstanding_invites(self.events, self.user_email)

    @property
    def invite_count(self) -> int:
        return len(self.outstanding_invites)

    def events_on(self, day: date | str, type_filter: str = "all") -> list[EventRead]:
        return views.events_on(self.events, day, type_filter)

    def month_grid(self, year: int, month: int) -> list[tuple[DayCell, bool]]:
        return views.marked_month_grid(self.events, year, month)
