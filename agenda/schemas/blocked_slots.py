from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class BlockedSlotIn(BaseModel):
    business_id: int = Field(..., ge=1)
    professional_id: int | None = Field(None, ge=1)  # None = negócio inteiro
    # aware = instante; naive = horário de parede no fuso do negócio
    start_time: datetime
    end_time: datetime
    reason: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def _check_order(self):
        if (self.start_time.tzinfo is None) != (self.end_time.tzinfo is None):
            raise ValueError("start_time e end_time devem ter o mesmo tipo de fuso")
        if self.end_time <= self.start_time:
            raise ValueError("end_time deve ser maior que start_time")
        return self


class BlockedSlotOut(BaseModel):
    id: int
    business_id: int
    professional_id: int | None
    start_time: str  # UTC 'Z'
    end_time: str
    reason: str | None
