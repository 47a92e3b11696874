import os
import sys

# Add the project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import agenda.db.base  # noqa: F401  registra todas as models
from agenda.db.base_class import Base
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.business import Business
from agenda.models.client import Client
from agenda.models.professional import Professional
from agenda.models.schedule import WeeklySchedule
from agenda.models.service import Service

# Relógio fixo dos testes: segunda-feira, 01/09/2025 09:00 em São Paulo
NOW = datetime(2025, 9, 1, 12, 0, tzinfo=UTC)
# Quarta-feira (day_of_week=3); São Paulo em -03:00
WEDNESDAY = date(2025, 9, 10)
TUESDAY = date(2025, 9, 9)


def fixed_clock() -> datetime:
    return NOW


class RecordingNotifier:
    """Substitui o NotificationDispatcher: só registra os eventos emitidos."""

    def __init__(self):
        self.events = []

    def emit(self, background, event):
        self.events.append(event)


def set_day(db, professional, day_of_week, start="09:00", end="18:00", available=True):
    sh, sm = map(int, start.split(":")) if start else (None, None)
    eh, em = map(int, end.split(":")) if end else (None, None)
    row = WeeklySchedule(
        professional_id=professional.id,
        day_of_week=day_of_week,
        is_available=available,
        start_time=time(sh, sm) if start else None,
        end_time=time(eh, em) if end else None,
    )
    db.add(row)
    db.commit()
    return row


def make_appointment(
    db,
    professional,
    customer,
    start,
    minutes=30,
    status=AppointmentStatus.CONFIRMED,
    service_name="Corte",
):
    ap = Appointment(
        business_id=professional.business_id,
        professional_id=professional.id,
        client_id=customer.id,
        service_name=service_name,
        price=Decimal("50.00"),
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        status=status,
    )
    db.add(ap)
    db.commit()
    db.refresh(ap)
    return ap


# Banco SQLite em memória, recriado a cada teste
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def TestingSessionLocal(engine):
    """Create a session factory for the test database."""
    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )


@pytest.fixture
def db_session(TestingSessionLocal):
    """Create a database session for each test."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(TestingSessionLocal, notifier):
    """Create a test client for API tests."""
    from fastapi.testclient import TestClient

    from agenda.db import get_db
    from agenda.deps import get_clock, get_notifier
    from agenda.main import app

    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def business(db_session):
    b = Business(
        name="Barbearia do Zé",
        timezone="America/Sao_Paulo",
        whatsapp_phone="11999990000",
    )
    db_session.add(b)
    db_session.commit()
    db_session.refresh(b)
    return b


@pytest.fixture
def other_business(db_session):
    b = Business(name="Salão Bela", timezone="America/Sao_Paulo")
    db_session.add(b)
    db_session.commit()
    db_session.refresh(b)
    return b


@pytest.fixture
def professional(db_session, business):
    p = Professional(business_id=business.id, name="João Navalha", is_active=True)
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture
def other_professional(db_session, business):
    p = Professional(business_id=business.id, name="Pedro Tesoura", is_active=True)
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


@pytest.fixture
def wednesday_schedule(db_session, professional):
    """Quarta 09:00–18:00; terça sem jornada cadastrada."""
    return set_day(db_session, professional, 3, "09:00", "18:00")


@pytest.fixture
def customer(db_session, business):
    c = Client(business_id=business.id, full_name="Maria Cliente", phone="11988887777")
    db_session.add(c)
    db_session.commit()
    db_session.refresh(c)
    return c


@pytest.fixture
def services(db_session, business):
    corte = Service(
        business_id=business.id, name="Corte", duration_minutes=30, price=Decimal("50.00")
    )
    barba = Service(
        business_id=business.id, name="Barba", duration_minutes=15, price=Decimal("30.00")
    )
    db_session.add_all([corte, barba])
    db_session.commit()
    db_session.refresh(corte)
    db_session.refresh(barba)
    return {"corte": corte, "barba": barba}
