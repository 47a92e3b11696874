from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agenda.core.errors import ConflictError, InvalidInputError, NotFoundError
from agenda.core.logging import bind_business, get_logger
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.client import Client
from agenda.models.professional import Professional
from agenda.models.service import Service
from agenda.schemas.appointments import PublicAppointmentIn
from agenda.services.availability import AvailabilityService
from agenda.services.clients import normalize_phone
from agenda.services.loyalty import LoyaltyLedger, LoyaltyResult, apply_status_transition
from agenda.utils.time import Clock, parse_iso_datetime, utc_now

log = get_logger(component="appointments")


def _parse_start(payload_iso: str) -> datetime:
    try:
        dt = parse_iso_datetime(payload_iso)
    except ValueError:
        raise InvalidInputError(
            "start_time_iso inválido (use ISO-8601, ex.: 2025-09-10T14:00:00Z)"
        ) from None
    if dt.tzinfo is None:
        # se vier sem TZ, interpretamos como UTC
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _load_professional(db: Session, professional_id: int) -> Professional:
    prof = db.get(Professional, professional_id)
    if not prof:
        raise NotFoundError("Profissional não encontrado.")
    if not prof.is_active:
        raise InvalidInputError("Profissional inativo.")
    return prof


def _load_services(db: Session, business_id: int, service_ids: list[int]) -> list[Service]:
    rows = db.execute(
        select(Service).where(
            Service.business_id == business_id, Service.id.in_(set(service_ids))
        )
    ).scalars()
    by_id = {s.id: s for s in rows}
    missing = [sid for sid in service_ids if sid not in by_id]
    if missing:
        raise InvalidInputError(f"Serviço(s) não encontrado(s): {missing}")
    return [by_id[sid] for sid in service_ids]


def upsert_client(
    db: Session, business_id: int, full_name: str, phone: str, email: str | None = None
) -> Client:
    digits = normalize_phone(phone)
    client = db.execute(
        select(Client).where(Client.business_id == business_id, Client.phone == digits)
    ).scalar_one_or_none()
    if client is not None:
        return client
    client = Client(business_id=business_id, full_name=full_name.strip(), phone=digits, email=email)
    db.add(client)
    db.flush()
    return client


def create_public_appointment(
    db: Session, payload: PublicAppointmentIn, *, clock: Clock = utc_now
) -> Appointment:
    """
    Agendamento feito pelo próprio cliente: soma os serviços escolhidos,
    confere que o início ainda está entre os horários livres e cria CONFIRMED.
    """
    prof = _load_professional(db, payload.professional_id)
    bind_business(prof.business_id)
    services = _load_services(db, prof.business_id, payload.service_ids)
    service_name = ", ".join(s.name for s in services)
    total_duration = sum(s.duration_minutes for s in services)
    price = sum((s.price for s in services), Decimal("0"))

    start_utc = _parse_start(payload.start_time_iso)
    free = AvailabilityService(db, clock=clock).available_times(
        prof.id, start_utc, total_duration
    )
    if start_utc not in free:
        raise ConflictError("Horário indisponível. Atualize os horários e escolha outro.")

    client = upsert_client(db, prof.business_id, payload.full_name, payload.phone, payload.email)
    ap = Appointment(
        business_id=prof.business_id,
        professional_id=prof.id,
        client_id=client.id,
        service_name=service_name,
        price=price,
        start_time=start_utc,
        end_time=start_utc + timedelta(minutes=total_duration),
        status=AppointmentStatus.CONFIRMED,
    )
    db.add(ap)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # corrida: índice único parcial (professional_id, start_time)
        if "ux_appt_prof_start_active" in str(e.orig) or "unique" in str(e.orig).lower():
            raise ConflictError(
                "Ops, o horário acabou de ser reservado por outra pessoa. "
                "Atualize os horários e escolha outro."
            ) from None
        raise

    db.refresh(ap)
    log.info(
        "appointment.created",
        appointment_id=ap.id,
        professional_id=prof.id,
        client_id=client.id,
        duration=total_duration,
    )
    return ap


@dataclass
class StatusChange:
    appointment: Appointment
    old_status: AppointmentStatus
    loyalty: LoyaltyResult | None = None

    @property
    def changed(self) -> bool:
        return self.old_status != self.appointment.status


def update_status(
    db: Session,
    appointment_id: int,
    new_status: AppointmentStatus,
    ledger: LoyaltyLedger,
) -> StatusChange:
    """
    Troca o status com UPDATE condicional (WHERE status = antigo): só uma
    requisição vence a transição, e só ela mexe na fidelidade. Salvar de novo
    o mesmo status não dispara nada.
    """
    ap = db.get(Appointment, appointment_id)
    if ap is None:
        raise NotFoundError("Agendamento não encontrado.")
    bind_business(ap.business_id)
    old_status = ap.status
    if old_status == new_status:
        return StatusChange(ap, old_status)

    result = db.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id, Appointment.status == old_status)
        .values(status=new_status, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("O agendamento foi alterado por outra operação. Recarregue.")
    db.commit()
    db.refresh(ap)
    log.info(
        "appointment.status_changed",
        appointment_id=ap.id,
        old=old_status.value,
        new=new_status.value,
    )

    loyalty = apply_status_transition(
        ledger, ap.client_id, ap.service_name, old_status, new_status
    )
    return StatusChange(ap, old_status, loyalty)


def cancel_by_token(db: Session, appointment_id: int, token: str) -> Appointment:
    """Cancelamento self-service: só agendamentos CONFIRMED com o token certo."""
    result = db.execute(
        update(Appointment)
        .where(
            Appointment.id == appointment_id,
            Appointment.cancellation_token == token,
            Appointment.status == AppointmentStatus.CONFIRMED,
        )
        .values(status=AppointmentStatus.CANCELLED, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidInputError(
            "Agendamento não encontrado ou já cancelado. Entre em contato com o salão."
        )
    db.commit()
    ap = db.get(Appointment, appointment_id)
    db.refresh(ap)
    log.info("appointment.cancelled_by_client", appointment_id=appointment_id)
    return ap
