from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from agenda.models.schedule import WeeklySchedule
from agenda.utils.tz import combine_local_to_utc, sunday_based_weekday


@dataclass(frozen=True)
class WorkingWindow:
    start: datetime  # UTC
    end: datetime  # UTC


def resolve_working_window(
    db: Session, professional_id: int, local_date: date, tz: ZoneInfo
) -> WorkingWindow | None:
    """
    Janela de trabalho do profissional na data LOCAL, convertida para UTC.
    None = não trabalha nesse dia (sem jornada, indisponível ou sem horários).
    Jornada que atravessa a meia-noite não é suportada.
    """
    day_of_week = sunday_based_weekday(local_date)
    entry = db.execute(
        select(WeeklySchedule).where(
            WeeklySchedule.professional_id == professional_id,
            WeeklySchedule.day_of_week == day_of_week,
        )
    ).scalar_one_or_none()

    if entry is None or not entry.is_available:
        return None
    if entry.start_time is None or entry.end_time is None:
        return None

    return WorkingWindow(
        start=combine_local_to_utc(local_date, entry.start_time, tz),
        end=combine_local_to_utc(local_date, entry.end_time, tz),
    )
