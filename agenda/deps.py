from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from agenda.db import get_db
from agenda.notifications import NotificationDispatcher
from agenda.services.availability import AvailabilityService
from agenda.services.loyalty import LoyaltyLedger
from agenda.utils.time import Clock, utc_now


def get_clock() -> Clock:
    return utc_now


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier


def get_availability_service(
    db: Session = Depends(get_db),  # noqa: B008
    clock: Clock = Depends(get_clock),  # noqa: B008
) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


def get_loyalty_ledger(db: Session = Depends(get_db)) -> LoyaltyLedger:  # noqa: B008
    return LoyaltyLedger(db)
