"""Error taxonomy for the calendar core.

Routes never build error responses themselves: services raise one of these
and the handlers registered in ``cpd_calendar.main`` turn it into a JSON
body of the form ``{"success": false, "message": ...}``.
"""


class CalendarError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CalendarError):
    """Missing or malformed required fields on create/update/invite."""

    status_code = 400


class NotAuthorized(CalendarError):
    """A non-owner attempted an owner-only mutation, or a third party tried to RSVP."""

    status_code = 403


class NotFound(CalendarError):
    """An event or attendee id did not resolve."""

    status_code = 404


class DeliveryFailure(Exception):
    """Notification delivery to a user failed.

    Never reaches an API caller. The invitation component catches it, logs it
    and records it as a diagnostic on the operation's result.
    """

    def __init__(self, user_id: str, reason: str):
        super().__init__(f"Delivery to user {user_id} failed: {reason}")
        self.user_id = user_id
        self.reason = reason
