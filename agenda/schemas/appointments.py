from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from agenda.models.appointment import AppointmentStatus


class PublicAppointmentIn(BaseModel):
    professional_id: int = Field(..., ge=1)
    service_ids: list[int] = Field(..., min_length=1)
    start_time_iso: str = Field(..., description="ISO-8601; preferir UTC com sufixo Z")
    full_name: str = Field(..., min_length=2, max_length=160)
    phone: str = Field(..., min_length=8, max_length=32)
    email: str | None = None


class AppointmentOut(BaseModel):
    id: int
    professional_id: int
    client_id: int
    service_name: str
    price: float | None
    start_time: str
    end_time: str
    status: str


class PublicAppointmentOut(BaseModel):
    success: bool = True
    appointment_id: int
    start_time: str
    end_time: str
    cancellation_token: str


class StatusUpdateIn(BaseModel):
    status: AppointmentStatus


class StatusUpdateOut(AppointmentOut):
    loyalty_points: int | None = None
    reward_granted: bool = False


class CancelIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: int = Field(..., ge=1, alias="appointmentId")
    token: str = Field(..., min_length=1)


class ClientPortalIn(BaseModel):
    phone: str = Field(..., min_length=8)


class ClientAppointmentOut(BaseModel):
    id: int
    business_id: int
    business_name: str
    professional_name: str
    service_name: str
    start_time: str
    status: str
    cancellation_token: str | None


class ClientPortalOut(BaseModel):
    appointments: list[ClientAppointmentOut]
    # business_id -> {service_key: pontos}
    loyalty: dict[int, dict[str, int]]
