from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from agenda.models.appointment import BUSY_STATUSES, Appointment
from agenda.models.blocked_slot import BlockedSlot
from agenda.utils.tz import Interval


def busy_appointments(
    db: Session, professional_id: int, day_start: datetime, day_end: datetime
) -> list[Interval]:
    # início dentro da janela (inclusivo nas duas pontas); CANCELLED libera o horário
    rows = db.execute(
        select(Appointment.start_time, Appointment.end_time).where(
            and_(
                Appointment.professional_id == professional_id,
                Appointment.status.in_(BUSY_STATUSES),
                Appointment.start_time >= day_start,
                Appointment.start_time <= day_end,
            )
        )
    ).all()
    return [Interval(start, end) for start, end in rows]


def busy_blocks(
    db: Session,
    business_id: int,
    professional_id: int,
    day_start: datetime,
    day_end: datetime,
) -> list[Interval]:
    # bloqueio do profissional OU do negócio inteiro que intersecta a janela
    rows = db.execute(
        select(BlockedSlot.start_time, BlockedSlot.end_time).where(
            and_(
                BlockedSlot.business_id == business_id,
                or_(
                    BlockedSlot.professional_id == professional_id,
                    BlockedSlot.professional_id.is_(None),
                ),
                BlockedSlot.start_time < day_end,
                BlockedSlot.end_time > day_start,
            )
        )
    ).all()
    return [Interval(start, end) for start, end in rows]


def collect_busy_intervals(
    db: Session,
    business_id: int,
    professional_id: int,
    day_start: datetime,
    day_end: datetime,
) -> list[Interval]:
    """
    Tudo que já ocupa a agenda do profissional no dia: agendamentos ativos
    e bloqueios aplicáveis. Sem fusão de intervalos; o gerador testa cada um.
    """
    return busy_appointments(db, professional_id, day_start, day_end) + busy_blocks(
        db, business_id, professional_id, day_start, day_end
    )
