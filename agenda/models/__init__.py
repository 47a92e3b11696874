from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.blocked_slot import BlockedSlot
from agenda.models.business import Business
from agenda.models.client import Client
from agenda.models.loyalty import LoyaltyPoint
from agenda.models.professional import Professional
from agenda.models.schedule import WeeklySchedule
from agenda.models.service import Service

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BlockedSlot",
    "Business",
    "Client",
    "LoyaltyPoint",
    "Professional",
    "Service",
    "WeeklySchedule",
]
