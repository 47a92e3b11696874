from __future__ import annotations

import datetime as dt
import enum
import secrets
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agenda.db.base_class import Base
from agenda.db.types import UTCDateTime


class AppointmentStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Status que ocupam a agenda do profissional
BUSY_STATUSES = (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED)


def new_cancellation_token() -> str:
    return secrets.token_urlsafe(24)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    professional_id: Mapped[int] = mapped_column(
        ForeignKey("professionals.id", ondelete="RESTRICT"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False
    )
    service_name: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            name="appointment_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AppointmentStatus.CONFIRMED,
    )
    start_time: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_time: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    cancellation_token: Mapped[str] = mapped_column(
        String(64), nullable=False, default=new_cancellation_token
    )
    reminder_sent_at: Mapped[dt.datetime | None] = mapped_column(UTCDateTime())

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(tz=dt.UTC),
        onupdate=lambda: dt.datetime.now(tz=dt.UTC),
    )

    business = relationship("Business")
    professional = relationship("Professional")
    client = relationship("Client")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appt_time_order"),
        # só um agendamento ativo por (profissional, início)
        Index(
            "ux_appt_prof_start_active",
            "professional_id",
            "start_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_appt_professional_start", "professional_id", "start_time"),
        Index("ix_appt_client_id", "client_id"),
    )
