from __future__ import annotations

from datetime import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from agenda.core.logging import get_logger
from agenda.db import get_db
from agenda.models.professional import Professional
from agenda.models.schedule import WeeklySchedule
from agenda.schemas.schedules import ScheduleDayOut, ScheduleWeekIn

router = APIRouter(prefix="/professionals", tags=["schedules"])
log = get_logger(component="schedules")


def _time_to_str(t: time | None) -> str | None:
    return None if t is None else f"{t.hour:02d}:{t.minute:02d}"


def _ensure_professional(db: Session, professional_id: int) -> Professional:
    p = db.get(Professional, professional_id)
    if not p:
        raise HTTPException(404, "Profissional não encontrado")
    return p


def _out(row: WeeklySchedule) -> ScheduleDayOut:
    return ScheduleDayOut(
        day_of_week=row.day_of_week,
        is_available=row.is_available,
        start_time=_time_to_str(row.start_time),
        end_time=_time_to_str(row.end_time),
    )


@router.get("/{professional_id}/schedule", response_model=list[ScheduleDayOut])
def get_schedule(professional_id: int, db: Session = Depends(get_db)):
    _ensure_professional(db, professional_id)
    rows = db.execute(
        select(WeeklySchedule)
        .where(WeeklySchedule.professional_id == professional_id)
        .order_by(WeeklySchedule.day_of_week.asc())
    ).scalars()
    return [_out(r) for r in rows]


@router.put("/{professional_id}/schedule", response_model=list[ScheduleDayOut])
def set_schedule(
    professional_id: int, payload: ScheduleWeekIn, db: Session = Depends(get_db)
):
    """Substitui a semana inteira do profissional (horários LOCAIS do negócio)."""
    _ensure_professional(db, professional_id)

    db.execute(
        delete(WeeklySchedule).where(WeeklySchedule.professional_id == professional_id)
    )
    rows = []
    for day in sorted(payload.days, key=lambda d: d.day_of_week):
        row = WeeklySchedule(
            professional_id=professional_id,
            day_of_week=day.day_of_week,
            is_available=day.is_available,
            start_time=day.start_time if day.is_available else None,
            end_time=day.end_time if day.is_available else None,
        )
        db.add(row)
        rows.append(row)
    db.commit()
    log.info(
        "schedule.replaced",
        professional_id=professional_id,
        working_days=[r.day_of_week for r in rows if r.is_available],
    )
    return [_out(r) for r in rows]
