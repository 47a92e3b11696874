from agenda.notifications.dispatcher import NotificationDispatcher
from agenda.notifications.events import AppointmentEvent, EventKind

__all__ = ["AppointmentEvent", "EventKind", "NotificationDispatcher"]
