from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from agenda.db import get_db
from agenda.deps import get_clock, get_loyalty_ledger, get_notifier
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.notifications import AppointmentEvent, EventKind, NotificationDispatcher
from agenda.schemas.appointments import (
    AppointmentOut,
    CancelIn,
    ClientAppointmentOut,
    ClientPortalIn,
    ClientPortalOut,
    PublicAppointmentIn,
    PublicAppointmentOut,
    StatusUpdateIn,
    StatusUpdateOut,
)
from agenda.services import appointments as appointment_service
from agenda.services.clients import client_portal
from agenda.services.loyalty import LoyaltyLedger
from agenda.utils.time import Clock
from agenda.utils.tz import iso_utc

router = APIRouter(tags=["appointments"])

_STATUS_EVENTS = {
    AppointmentStatus.COMPLETED: EventKind.COMPLETED,
    AppointmentStatus.CANCELLED: EventKind.CANCELLED,
}


def _out(ap: Appointment) -> dict:
    return {
        "id": ap.id,
        "professional_id": ap.professional_id,
        "client_id": ap.client_id,
        "service_name": ap.service_name,
        "price": float(ap.price) if ap.price is not None else None,
        "start_time": iso_utc(ap.start_time),
        "end_time": iso_utc(ap.end_time),
        "status": ap.status.value,
    }


# ------- público: cliente agenda sozinho -------
@router.post("/public/appointments", response_model=PublicAppointmentOut, status_code=201)
def create_public_appointment(
    payload: PublicAppointmentIn,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    ap = appointment_service.create_public_appointment(db, payload, clock=clock)
    # entrega fora do request; falha de envio não desfaz o agendamento
    notifier.emit(background, AppointmentEvent(EventKind.CREATED, ap.id))
    return PublicAppointmentOut(
        appointment_id=ap.id,
        start_time=iso_utc(ap.start_time),
        end_time=iso_utc(ap.end_time),
        cancellation_token=ap.cancellation_token,
    )


@router.post("/public/appointments/cancel", response_model=AppointmentOut)
def cancel_appointment(
    payload: CancelIn,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    ap = appointment_service.cancel_by_token(db, payload.appointment_id, payload.token)
    notifier.emit(background, AppointmentEvent(EventKind.CANCELLED, ap.id))
    return AppointmentOut(**_out(ap))


@router.post("/public/client-appointments", response_model=ClientPortalOut)
def list_client_appointments(payload: ClientPortalIn, db: Session = Depends(get_db)):
    portal = client_portal(db, payload.phone)
    return ClientPortalOut(
        appointments=[
            ClientAppointmentOut(
                id=ap.id,
                business_id=ap.business_id,
                business_name=ap.business.name,
                professional_name=ap.professional.name,
                service_name=ap.service_name,
                start_time=iso_utc(ap.start_time),
                status=ap.status.value,
                cancellation_token=(
                    ap.cancellation_token
                    if ap.status == AppointmentStatus.CONFIRMED
                    else None
                ),
            )
            for ap in portal.appointments
        ],
        loyalty=portal.loyalty,
    )


# ------- painel: troca de status (dispara fidelidade) -------
@router.patch("/appointments/{appointment_id}/status", response_model=StatusUpdateOut)
def update_status(
    appointment_id: int,
    payload: StatusUpdateIn,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    ledger: LoyaltyLedger = Depends(get_loyalty_ledger),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    change = appointment_service.update_status(
        db, appointment_id, payload.status, ledger
    )
    ap, loyalty = change.appointment, change.loyalty
    if change.changed and ap.status in _STATUS_EVENTS:
        notifier.emit(background, AppointmentEvent(_STATUS_EVENTS[ap.status], ap.id))
    return StatusUpdateOut(
        **_out(ap),
        loyalty_points=loyalty.new_count if loyalty else None,
        reward_granted=loyalty.reward_granted if loyalty else False,
    )
