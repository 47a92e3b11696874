# scripts/seed.py
from __future__ import annotations

import os
import random
import zoneinfo
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

# get_db é um generator do FastAPI; aqui usamos next(get_db()) pra obter uma Session
from agenda.db import get_db
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.business import Business
from agenda.models.client import Client
from agenda.models.professional import Professional
from agenda.models.schedule import WeeklySchedule
from agenda.models.service import Service
from agenda.utils.tz import combine_local_to_utc, sunday_based_weekday

# ---------------- Configuráveis por ENV ----------------
SEED_TZ = os.getenv("SEED_TZ", "America/Sao_Paulo")
BR_TZ = zoneinfo.ZoneInfo(SEED_TZ)
SEED_DAYS = int(os.getenv("SEED_DAYS", "10"))

# ---------------- Dados de Exemplo ----------------
BUSINESS_NAME = "Barbearia do Zé"

PROFESSIONALS_DATA = ["João Navalha", "Pedro Tesoura", "Carla Escova"]

SERVICES_DATA = [
    ("Corte", 30, Decimal("50.00")),
    ("Barba", 15, Decimal("30.00")),
    ("Corte e Barba", 45, Decimal("70.00")),
    ("Escova", 60, Decimal("80.00")),
]

CLIENTS_DATA = [
    ("Marcos Lima", "11988880001"),
    ("Patrícia Alves", "11988880002"),
    ("Roberta Dias", "11988880003"),
    ("Carlos Nogueira", "11988880004"),
]

# Ter a Sáb 09:00–18:00 (0=domingo ... 6=sábado), horário local do salão
WEEK = {d: (time(9), time(18)) for d in range(2, 7)}


def get_session() -> Session:
    gen = get_db()
    session: Session = next(gen)
    return session


def _next_days(n_days: int) -> Iterable[date]:
    d = datetime.now(BR_TZ).date() + timedelta(days=1)
    for i in range(n_days):
        yield d + timedelta(days=i)


# ---------------- Funções de Seed ----------------
def ensure_business(db: Session) -> Business:
    business = db.execute(
        select(Business).where(Business.name == BUSINESS_NAME)
    ).scalar_one_or_none()
    if business:
        return business
    business = Business(name=BUSINESS_NAME, timezone=SEED_TZ, whatsapp_phone="11999990000")
    db.add(business)
    db.commit()
    db.refresh(business)
    print(f"[Seed] Negócio criado: {business.name} ({business.timezone})")
    return business


def ensure_professionals(db: Session, business: Business) -> list[Professional]:
    professionals = []
    for name in PROFESSIONALS_DATA:
        prof = db.execute(
            select(Professional).where(
                Professional.business_id == business.id, Professional.name == name
            )
        ).scalar_one_or_none()
        if not prof:
            prof = Professional(business_id=business.id, name=name, is_active=True)
            db.add(prof)
            db.commit()
            db.refresh(prof)
            print(f"[Seed] Profissional criado: {prof.name}")
        professionals.append(prof)
    return professionals


def ensure_schedules(db: Session, professionals: list[Professional]):
    for prof in professionals:
        for day_of_week, (start, end) in WEEK.items():
            existing = db.execute(
                select(WeeklySchedule).where(
                    WeeklySchedule.professional_id == prof.id,
                    WeeklySchedule.day_of_week == day_of_week,
                )
            ).scalar_one_or_none()
            if not existing:
                db.add(
                    WeeklySchedule(
                        professional_id=prof.id,
                        day_of_week=day_of_week,
                        is_available=True,
                        start_time=start,
                        end_time=end,
                    )
                )
    db.commit()
    print("[Seed] Jornadas semanais criadas para os profissionais.")


def ensure_services(db: Session, business: Business) -> list[Service]:
    services = []
    for name, minutes, price in SERVICES_DATA:
        svc = db.execute(
            select(Service).where(Service.business_id == business.id, Service.name == name)
        ).scalar_one_or_none()
        if not svc:
            svc = Service(
                business_id=business.id, name=name, duration_minutes=minutes, price=price
            )
            db.add(svc)
            db.commit()
            db.refresh(svc)
        services.append(svc)
    print(f"[Seed] {len(services)} serviços no catálogo.")
    return services


def ensure_clients(db: Session, business: Business) -> list[Client]:
    clients = []
    for full_name, phone in CLIENTS_DATA:
        client = db.execute(
            select(Client).where(Client.business_id == business.id, Client.phone == phone)
        ).scalar_one_or_none()
        if not client:
            client = Client(business_id=business.id, full_name=full_name, phone=phone)
            db.add(client)
            db.commit()
            db.refresh(client)
            print(f"[Seed] Cliente criado: {client.full_name}")
        clients.append(client)
    return clients


def ensure_appointments(
    db: Session,
    professionals: list[Professional],
    services: list[Service],
    clients: list[Client],
    days_to_seed: int,
):
    print("[Seed] Gerando agendamentos...")
    total = 0
    for day in _next_days(days_to_seed):
        window = WEEK.get(sunday_based_weekday(day))
        if window is None:
            continue
        for prof in professionals:
            # um atendimento a cada 2h, começando na abertura
            hour = window[0].hour
            while hour + 1 <= window[1].hour:
                start_utc = combine_local_to_utc(day, time(hour), BR_TZ)
                hour += 2
                if db.execute(
                    select(Appointment.id).where(
                        Appointment.professional_id == prof.id,
                        Appointment.start_time == start_utc,
                    )
                ).first():
                    continue
                # ~60% de ocupação
                if random.random() > 0.4:
                    svc = random.choice(services)
                    db.add(
                        Appointment(
                            business_id=prof.business_id,
                            professional_id=prof.id,
                            client_id=random.choice(clients).id,
                            service_name=svc.name,
                            price=svc.price,
                            start_time=start_utc,
                            end_time=start_utc + timedelta(minutes=svc.duration_minutes),
                            status=AppointmentStatus.CONFIRMED,
                        )
                    )
                    total += 1
    db.commit()
    print(f"[Seed] {total} agendamentos criados.")


def check_tables_exist(db: Session) -> bool:
    """Confere se as migrações já rodaram."""
    required_tables = ["businesses", "professionals", "services", "clients", "appointments"]
    try:
        for table in required_tables:
            db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
        return True
    except (ProgrammingError, OperationalError):
        db.rollback()
        return False


def main():
    print("[Seed] Iniciando seed do banco de dados...")
    db = None
    try:
        db = get_session()

        if not check_tables_exist(db):
            print("[Seed] Erro: as tabelas ainda não foram criadas.")
            print("[Seed] Execute as migrações antes:  alembic upgrade head")
            return

        business = ensure_business(db)
        professionals = ensure_professionals(db, business)
        ensure_schedules(db, professionals)
        services = ensure_services(db, business)
        clients = ensure_clients(db, business)
        ensure_appointments(db, professionals, services, clients, SEED_DAYS)

        print("\n[Seed] Concluído!")
        print("-------------------------------------------------")
        print(f"Negócio: {business.name} (id={business.id})")
        for prof in professionals:
            print(f"- Profissional {prof.name} (id={prof.id})")
        print(f"Gerado em {datetime.now(UTC).isoformat()}")
        print("-------------------------------------------------")
    except Exception as e:
        print(f"[Seed] Erro durante o seed: {e}")
        raise
    finally:
        if db:
            db.close()


if __name__ == "__main__":
    main()
