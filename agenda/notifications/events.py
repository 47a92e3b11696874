from __future__ import annotations

import enum
from dataclasses import dataclass


class EventKind(str, enum.Enum):
    CREATED = "created"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REMINDER = "reminder"


@dataclass(frozen=True)
class AppointmentEvent:
    kind: EventKind
    appointment_id: int
