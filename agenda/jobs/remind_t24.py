"""
Lembrete de véspera: agendamentos CONFIRMED que começam em [agora+24h, agora+25h)
e ainda sem lembrete recebem a mensagem e são marcados.

Rodar a cada hora (cron): ``python -m agenda.jobs.remind_t24``
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from agenda.core.logging import configure_logging, get_logger
from agenda.core.settings import settings
from agenda.db.session import SessionLocal
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.notifications import EventKind, NotificationDispatcher

log = get_logger(component="remind_t24")


def reminder_window(now: datetime) -> tuple[datetime, datetime]:
    start = now + timedelta(hours=24)
    return start, start + timedelta(hours=1)


def due_appointments(db: Session, now: datetime) -> list[Appointment]:
    start_utc, end_utc = reminder_window(now)
    return list(
        db.execute(
            select(Appointment)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.professional),
                joinedload(Appointment.business),
            )
            .where(
                Appointment.status == AppointmentStatus.CONFIRMED,
                Appointment.reminder_sent_at.is_(None),
                Appointment.start_time >= start_utc,
                Appointment.start_time < end_utc,
            )
        )
        .scalars()
        .all()
    )


def send_reminders(
    db: Session, notifier: NotificationDispatcher, now: datetime | None = None
) -> int:
    now = now or datetime.now(UTC)
    reminded = 0
    errors = 0
    for ap in due_appointments(db, now):
        try:
            notifier.deliver(ap, EventKind.REMINDER)
        except Exception:
            # um cliente com problema não impede os demais
            errors += 1
            log.exception("reminder.failed", appointment_id=ap.id)
            continue
        ap.reminder_sent_at = now
        reminded += 1
    db.commit()

    start_utc, end_utc = reminder_window(now)
    log.info(
        "reminder.run",
        reminded=reminded,
        errors=errors,
        window_start=start_utc.isoformat(),
        window_end=end_utc.isoformat(),
    )
    return reminded


def main() -> None:
    configure_logging(json=settings.LOG_JSON, level=settings.LOG_LEVEL)
    notifier = NotificationDispatcher.from_settings(SessionLocal, settings)
    with SessionLocal() as db:
        send_reminders(db, notifier)


if __name__ == "__main__":
    main()
