from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agenda.db.base_class import Base


class WeeklySchedule(Base):
    """
    Jornada semanal recorrente do profissional, em horário LOCAL do negócio.
    No máximo uma linha por (profissional, dia da semana).
    """

    __tablename__ = "professional_schedules"
    __table_args__ = (
        UniqueConstraint(
            "professional_id", "day_of_week", name="uq_schedule_prof_weekday"
        ),
        CheckConstraint(
            "day_of_week >= 0 AND day_of_week <= 6", name="ck_schedule_weekday"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    professional_id: Mapped[int] = mapped_column(
        ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(
        Integer, nullable=False
    )  # 0=domingo ... 6=sábado
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    start_time: Mapped[dt.time | None] = mapped_column(Time())
    end_time: Mapped[dt.time | None] = mapped_column(Time())

    professional = relationship("Professional", back_populates="schedules")
