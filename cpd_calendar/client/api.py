"""Async HTTP client for the calendar REST API."""
import logging
from uuid import UUID

import httpx

from cpd_calendar.core.auth import USER_ID_HEADER
from cpd_calendar.core.config import settings
from cpd_calendar.schemas import AttendeeInvite, EventCreate, EventRead, EventUpdate

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A request failed, either on the network or with an error response.

    ``status_code`` is None for network failures.
    """

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


def _error_message(response: httpx.Response) -> str:
    """Pull a user-facing message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Request failed with status {response.status_code}"

    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        detail = body.get("detail")
        if isinstance(detail, list) and detail:
            # FastAPI request validation errors
            first = detail[0]
            field = ".".join(str(part) for part in first.get("loc", [])[1:])
            return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        if detail:
            return str(detail)
    return f"Request failed with status {response.status_code}"


class CalendarApi:
    """Typed wrapper around the /events endpoints.

    The wrapped httpx client carries the base URL, the caller identity header
    and the transport timeout.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def connect(
        cls,
        user_id: str,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> "CalendarApi":
        """Build a client for ``user_id`` from settings."""
        client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers={USER_ID_HEADER: user_id},
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
        )
        return cls(client)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(None, f"Network request failed: {e}") from e

        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        return response.json()

    async def list_events(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        type: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[EventRead]:
        params = {
            "startDate": start_date,
            "endDate": end_date,
            "type": type,
            "limit": limit,
            "offset": offset,
        }
        params = {key: value for key, value in params.items() if value is not None}
        body = await self._request("GET", "/events", params=params)
        return [EventRead.model_validate(item) for item in body["data"]]

    async def get_event(self, event_id: UUID) -> EventRead:
        body = await self._request("GET", f"/events/{event_id}")
        return EventRead.model_validate(body["data"])

    async def create_event(self, data: EventCreate) -> EventRead:
        body = await self._request(
            "POST", "/events", json=data.model_dump(by_alias=True, exclude_none=True)
        )
        return EventRead.model_validate(body["data"])

    async def update_event(self, event_id: UUID, patch: EventUpdate) -> EventRead:
        body = await self._request(
            "PUT",
            f"/events/{event_id}",
            json=patch.model_dump(by_alias=True, exclude_unset=True),
        )
        return EventRead.model_validate(body["data"])

    async def delete_event(self, event_id: UUID) -> None:
        await self._request("DELETE", f"/events/{event_id}")

    async def copy_event(self, event_id: UUID, date: str) -> EventRead:
        body = await self._request("POST", f"/events/{event_id}/copy", json={"date": date})
        return EventRead.model_validate(body["data"])

    async def invite(self, event_id: UUID, attendees: list[AttendeeInvite]) -> EventRead:
        payload = {
            "attendees": [a.model_dump(by_alias=True, exclude_none=True) for a in attendees]
        }
        body = await self._request("POST", f"/events/{event_id}/invite", json=payload)
        return EventRead.model_validate(body["data"])

    async def respond(self, event_id: UUID, attendee_id: UUID, status: str) -> None:
        await self._request(
            "POST",
            f"/events/{event_id}/attendees/{attendee_id}/respond",
            json={"status": status},
        )
