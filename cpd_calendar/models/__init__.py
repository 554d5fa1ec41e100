from cpd_calendar.models.attendee import Attendee
from cpd_calendar.models.event import CalendarEvent
from cpd_calendar.models.notification import Notification
from cpd_calendar.models.user import User

__all__ = ["CalendarEvent", "Attendee", "Notification", "User"]
