"""
Livro de fidelidade: um contador por (cliente, serviço).

Cada conclusão soma 1 ponto; ao atingir ``REWARD_THRESHOLD`` o cliente ganha
o serviço e o contador volta a 0 na mesma escrita. Reverter uma conclusão
retira 1 ponto, nunca abaixo de zero.

As escritas são compare-and-swap (``UPDATE ... WHERE points = :lido``) com
nova tentativa em conflito: duas conclusões simultâneas que leem 9 não
concedem duas recompensas.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agenda.core.logging import get_logger
from agenda.core.settings import settings
from agenda.models.appointment import AppointmentStatus
from agenda.models.client import Client
from agenda.models.loyalty import REWARD_THRESHOLD, LoyaltyPoint

log = get_logger(component="loyalty")

_WHITESPACE = re.compile(r"\s+")


class LoyaltyConflictError(RuntimeError):
    """Contador disputado além do limite de tentativas."""


@dataclass(frozen=True)
class LoyaltyResult:
    new_count: int
    reward_granted: bool


NO_EFFECT = LoyaltyResult(new_count=0, reward_granted=False)


def service_key(service_name: str) -> str:
    """'Corte Masculino' -> 'corte_masculino'. Nome vazio é ValueError."""
    key = _WHITESPACE.sub("_", (service_name or "").strip().lower())
    if not key:
        raise ValueError("Nome de serviço vazio não gera chave de fidelidade")
    return key


class LoyaltyLedger:
    def __init__(self, db: Session, *, max_retries: int | None = None) -> None:
        self.db = db
        self.max_retries = max_retries or settings.LOYALTY_MAX_RETRIES

    # ---------- leitura ----------

    def _client_exists(self, client_id: int) -> bool:
        return (
            self.db.execute(select(Client.id).where(Client.id == client_id)).first()
            is not None
        )

    def _read(self, client_id: int, key: str) -> int:
        points = self.db.execute(
            select(LoyaltyPoint.points).where(
                LoyaltyPoint.client_id == client_id, LoyaltyPoint.service_key == key
            )
        ).scalar_one_or_none()
        return points or 0

    def balances(self, client_id: int) -> dict[str, int]:
        rows = self.db.execute(
            select(LoyaltyPoint.service_key, LoyaltyPoint.points)
            .where(LoyaltyPoint.client_id == client_id)
            .order_by(LoyaltyPoint.service_key)
        ).all()
        return {key: points for key, points in rows}

    def count(self, client_id: int, service_name: str) -> int:
        return self._read(client_id, service_key(service_name))

    # ---------- escrita ----------

    def _ensure_row(self, client_id: int, key: str) -> None:
        exists = self.db.execute(
            select(LoyaltyPoint.id).where(
                LoyaltyPoint.client_id == client_id, LoyaltyPoint.service_key == key
            )
        ).first()
        if exists is not None:
            return
        try:
            self.db.execute(
                insert(LoyaltyPoint).values(client_id=client_id, service_key=key, points=0)
            )
            self.db.commit()
        except IntegrityError:
            # outra transação criou a linha primeiro
            self.db.rollback()

    def _compare_and_set(self, client_id: int, key: str, expected: int, new: int) -> bool:
        result = self.db.execute(
            update(LoyaltyPoint)
            .where(
                LoyaltyPoint.client_id == client_id,
                LoyaltyPoint.service_key == key,
                LoyaltyPoint.points == expected,
            )
            .values(points=new)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self.db.commit()
            return True
        self.db.rollback()
        return False

    def accrue(self, client_id: int, service_name: str) -> LoyaltyResult:
        if not self._client_exists(client_id):
            log.warning("loyalty.client_not_found", client_id=client_id, op="accrue")
            return NO_EFFECT

        key = service_key(service_name)
        self._ensure_row(client_id, key)
        for attempt in range(1, self.max_retries + 1):
            current = self._read(client_id, key)
            incremented = current + 1
            reward = incremented >= REWARD_THRESHOLD
            new = 0 if reward else incremented
            if self._compare_and_set(client_id, key, current, new):
                if reward:
                    log.info("loyalty.reward_granted", client_id=client_id, key=key)
                else:
                    log.info("loyalty.accrued", client_id=client_id, key=key, points=new)
                return LoyaltyResult(new_count=new, reward_granted=reward)
            log.info("loyalty.cas_conflict", client_id=client_id, key=key, attempt=attempt)
        raise LoyaltyConflictError(f"Contador {key!r} do cliente {client_id} disputado")

    def deduct(self, client_id: int, service_name: str) -> None:
        if not self._client_exists(client_id):
            log.warning("loyalty.client_not_found", client_id=client_id, op="deduct")
            return

        key = service_key(service_name)
        for attempt in range(1, self.max_retries + 1):
            current = self._read(client_id, key)
            if current <= 0:
                return
            if self._compare_and_set(client_id, key, current, current - 1):
                log.info("loyalty.deducted", client_id=client_id, key=key, points=current - 1)
                return
            log.info("loyalty.cas_conflict", client_id=client_id, key=key, attempt=attempt)
        raise LoyaltyConflictError(f"Contador {key!r} do cliente {client_id} disputado")


def apply_status_transition(
    ledger: LoyaltyLedger,
    client_id: int,
    service_name: str,
    old: AppointmentStatus,
    new: AppointmentStatus,
) -> LoyaltyResult | None:
    """
    Entrar em COMPLETED soma ponto; sair de COMPLETED retira. Outras transições
    não mexem no contador. Falhas são logadas e engolidas: perder um ponto é
    aceitável, bloquear a conclusão do atendimento não.
    """
    try:
        if new == AppointmentStatus.COMPLETED and old != AppointmentStatus.COMPLETED:
            return ledger.accrue(client_id, service_name)
        if old == AppointmentStatus.COMPLETED and new != AppointmentStatus.COMPLETED:
            ledger.deduct(client_id, service_name)
    except Exception:
        ledger.db.rollback()
        log.exception(
            "loyalty.transition_failed",
            client_id=client_id,
            old=old.value,
            new=new.value,
        )
    return None
