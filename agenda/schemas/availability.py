from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AvailabilityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    professional_id: int | None = Field(None, alias="professionalId")
    # qualquer horário do dia alvo (ISO-8601) ou só a data 'YYYY-MM-DD'
    date: str | None = None
    total_duration: int | None = Field(None, alias="totalDuration")


class AvailabilityOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    available_times: list[str] = Field(default_factory=list, alias="availableTimes")


class AvailabilityLocalOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    professional_id: int
    date: str
    timezone: str
    total_duration: int
    available_times: list[str] = Field(alias="availableTimes")  # UTC com 'Z'
    available_times_local: list[str] = Field(alias="availableTimesLocal")  # "HH:MM"
