import pytest

from agenda.models.appointment import AppointmentStatus
from agenda.services.loyalty import (
    NO_EFFECT,
    LoyaltyConflictError,
    LoyaltyLedger,
    LoyaltyResult,
    apply_status_transition,
    service_key,
)

CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELLED = AppointmentStatus.CANCELLED


def test_service_key_normalization():
    assert service_key("Corte Masculino") == "corte_masculino"
    assert service_key("  Corte   de\tCabelo ") == "corte_de_cabelo"
    # combinação de serviços vira uma chave só
    assert service_key("Corte, Barba") == "corte,_barba"
    with pytest.raises(ValueError):
        service_key("   ")


def test_ten_completions_grant_one_reward(db_session, customer):
    ledger = LoyaltyLedger(db_session)
    for expected in range(1, 10):
        assert ledger.accrue(customer.id, "Corte") == LoyaltyResult(expected, False)
    assert ledger.accrue(customer.id, "Corte") == LoyaltyResult(0, True)
    assert ledger.accrue(customer.id, "Corte") == LoyaltyResult(1, False)
    assert ledger.count(customer.id, "corte") == 1


def test_counters_are_per_service(db_session, customer):
    ledger = LoyaltyLedger(db_session)
    ledger.accrue(customer.id, "Corte")
    ledger.accrue(customer.id, "Corte")
    ledger.accrue(customer.id, "Barba")
    assert ledger.balances(customer.id) == {"barba": 1, "corte": 2}


def test_deduct_never_goes_negative(db_session, customer):
    ledger = LoyaltyLedger(db_session)
    ledger.deduct(customer.id, "Corte")
    assert ledger.count(customer.id, "Corte") == 0
    for _ in range(3):
        ledger.accrue(customer.id, "Corte")
    ledger.deduct(customer.id, "Corte")
    assert ledger.count(customer.id, "Corte") == 2


def test_unknown_client_has_no_effect(db_session):
    ledger = LoyaltyLedger(db_session)
    assert ledger.accrue(4242, "Corte") is NO_EFFECT
    ledger.deduct(4242, "Corte")
    assert ledger.balances(4242) == {}


def test_stale_read_retries_and_rewards_once(db_session, customer, monkeypatch):
    ledger = LoyaltyLedger(db_session)
    for _ in range(9):
        ledger.accrue(customer.id, "Corte")

    real_read = ledger._read
    reads = []

    def _stale_then_real(client_id, key):
        reads.append(key)
        # primeira leitura simula outra conclusão lida antes desta
        return 8 if len(reads) == 1 else real_read(client_id, key)

    monkeypatch.setattr(ledger, "_read", _stale_then_real)
    result = ledger.accrue(customer.id, "Corte")
    assert result == LoyaltyResult(0, True)
    assert len(reads) == 2
    assert real_read(customer.id, "corte") == 0


def test_two_completions_reading_nine_reward_once(db_session, customer, monkeypatch):
    ledger = LoyaltyLedger(db_session)
    for _ in range(9):
        ledger.accrue(customer.id, "Corte")

    # as duas leem 9; só a primeira escrita condicional pode vencer
    first = ledger.accrue(customer.id, "Corte")
    monkeypatch.setattr(ledger, "_read", lambda client_id, key: 9)
    monkeypatch.setattr(ledger, "max_retries", 2)
    with pytest.raises(LoyaltyConflictError):
        ledger.accrue(customer.id, "Corte")
    assert first.reward_granted
    monkeypatch.undo()
    assert ledger.count(customer.id, "Corte") == 0


def test_transition_rules(db_session, customer):
    ledger = LoyaltyLedger(db_session)
    r = apply_status_transition(ledger, customer.id, "Corte", CONFIRMED, COMPLETED)
    assert r == LoyaltyResult(1, False)
    # salvar COMPLETED de novo não pontua
    assert apply_status_transition(ledger, customer.id, "Corte", COMPLETED, COMPLETED) is None
    assert ledger.count(customer.id, "Corte") == 1
    # cancelar um confirmado não mexe no contador
    apply_status_transition(ledger, customer.id, "Corte", CONFIRMED, CANCELLED)
    assert ledger.count(customer.id, "Corte") == 1
    # sair de COMPLETED retira o ponto
    apply_status_transition(ledger, customer.id, "Corte", COMPLETED, CANCELLED)
    assert ledger.count(customer.id, "Corte") == 0


def test_transition_failure_is_swallowed(db_session, customer, monkeypatch):
    ledger = LoyaltyLedger(db_session)

    def _conflict(*args, **kwargs):
        raise LoyaltyConflictError("disputado")

    monkeypatch.setattr(ledger, "accrue", _conflict)
    assert apply_status_transition(ledger, customer.id, "Corte", CONFIRMED, COMPLETED) is None
