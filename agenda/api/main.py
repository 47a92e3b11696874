"""API router setup."""
from fastapi import APIRouter

from agenda.api.routes import appointments, availability, blocked_slots, schedules

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(appointments.router)
api_router.include_router(availability.router)
api_router.include_router(blocked_slots.router)
api_router.include_router(schedules.router)
