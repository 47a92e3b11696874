from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from agenda.core.errors import InvalidInputError
from agenda.models.appointment import Appointment
from agenda.models.client import Client
from agenda.services.loyalty import LoyaltyLedger

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str) -> str:
    """Só dígitos: '(11) 98888-7777' -> '11988887777'."""
    digits = _NON_DIGITS.sub("", phone or "")
    if len(digits) < 8:
        raise InvalidInputError("Telefone inválido.")
    return digits


@dataclass
class ClientPortal:
    appointments: list[Appointment]
    loyalty: dict[int, dict[str, int]]


def client_portal(db: Session, phone: str) -> ClientPortal:
    """
    Visão do cliente em todos os negócios: o telefone casa com todas as
    fichas de cliente que o contêm (uma por negócio).
    """
    digits = normalize_phone(phone)
    clients = db.execute(select(Client).where(Client.phone.contains(digits))).scalars().all()
    if not clients:
        return ClientPortal(appointments=[], loyalty={})

    ledger = LoyaltyLedger(db)
    loyalty: dict[int, dict[str, int]] = {}
    for c in clients:
        # duas fichas no mesmo negócio somam os pontos por serviço
        per_business = loyalty.setdefault(c.business_id, {})
        for key, points in ledger.balances(c.id).items():
            per_business[key] = per_business.get(key, 0) + points

    appointments = (
        db.execute(
            select(Appointment)
            .options(joinedload(Appointment.professional), joinedload(Appointment.business))
            .where(Appointment.client_id.in_([c.id for c in clients]))
            .order_by(Appointment.start_time.desc())
        )
        .scalars()
        .all()
    )
    return ClientPortal(appointments=list(appointments), loyalty=loyalty)
