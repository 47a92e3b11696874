from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from agenda.deps import get_availability_service
from agenda.schemas.availability import (
    AvailabilityLocalOut,
    AvailabilityOut,
    AvailabilityRequest,
)
from agenda.services.availability import AvailabilityService
from agenda.utils.tz import iso_utc

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("", response_model=AvailabilityOut, response_model_by_alias=True)
def get_availability(
    payload: AvailabilityRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    """
    Horários livres (UTC, crescentes) para o profissional no dia local de 'date'.
    Profissional sem jornada no dia devolve lista vazia, não erro.
    """
    slots = service.available_times(
        payload.professional_id, payload.date, payload.total_duration
    )
    return AvailabilityOut(available_times=[iso_utc(s) for s in slots])


@router.get("", response_model=AvailabilityLocalOut, response_model_by_alias=True)
def get_availability_local(
    professional_id: int = Query(..., ge=1),
    date: str = Query(..., description="YYYY-MM-DD (data local) ou ISO-8601"),
    duration: int = Query(..., ge=1, le=720),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Mesmo cálculo, com os horários também em HH:MM no fuso do negócio."""
    result = service.compute(professional_id, date, duration)
    return AvailabilityLocalOut(
        professional_id=result.professional_id,
        date=result.local_date.isoformat(),
        timezone=result.timezone.key,
        total_duration=duration,
        available_times=[iso_utc(s) for s in result.slots],
        available_times_local=[
            s.astimezone(result.timezone).strftime("%H:%M") for s in result.slots
        ],
    )
