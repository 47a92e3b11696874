# Garante o registro de TODAS as models no mesmo registry
from agenda.db.base_class import Base  # noqa
from agenda.models.appointment import Appointment  # noqa
from agenda.models.blocked_slot import BlockedSlot  # noqa
from agenda.models.business import Business  # noqa
from agenda.models.client import Client  # noqa
from agenda.models.loyalty import LoyaltyPoint  # noqa
from agenda.models.professional import Professional  # noqa
from agenda.models.schedule import WeeklySchedule  # noqa
from agenda.models.service import Service  # noqa
