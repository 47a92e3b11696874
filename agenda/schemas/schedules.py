from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field, model_validator


class ScheduleDayIn(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=domingo ... 6=sábado")
    is_available: bool = False
    start_time: time | None = None  # local HH:MM
    end_time: time | None = None

    @model_validator(mode="after")
    def _check_times(self):
        if self.is_available:
            if self.start_time is None or self.end_time is None:
                raise ValueError("dia disponível precisa de início e fim")
            if self.end_time <= self.start_time:
                raise ValueError("end_time deve ser maior que start_time")
        return self


class ScheduleWeekIn(BaseModel):
    days: list[ScheduleDayIn] = Field(..., max_length=7)

    @model_validator(mode="after")
    def _unique_days(self):
        seen = [d.day_of_week for d in self.days]
        if len(seen) != len(set(seen)):
            raise ValueError("dia da semana repetido")
        return self


class ScheduleDayOut(BaseModel):
    day_of_week: int
    is_available: bool
    start_time: str | None  # "HH:MM"
    end_time: str | None
