from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from agenda.core.logging import get_logger
from agenda.db import get_db
from agenda.models.blocked_slot import BlockedSlot
from agenda.models.business import Business
from agenda.models.professional import Professional
from agenda.schemas.blocked_slots import BlockedSlotIn, BlockedSlotOut
from agenda.utils.tz import iso_utc, local_day_bounds_utc, resolve_timezone, to_utc

router = APIRouter(prefix="/blocked-slots", tags=["blocked-slots"])
log = get_logger(component="blocked_slots")


def _out(b: BlockedSlot) -> BlockedSlotOut:
    return BlockedSlotOut(
        id=b.id,
        business_id=b.business_id,
        professional_id=b.professional_id,
        start_time=iso_utc(b.start_time),
        end_time=iso_utc(b.end_time),
        reason=b.reason,
    )


def _ensure_business(db: Session, business_id: int) -> Business:
    business = db.get(Business, business_id)
    if not business:
        raise HTTPException(404, "Negócio não encontrado")
    return business


@router.post("", response_model=BlockedSlotOut, status_code=201)
def create_blocked_slot(payload: BlockedSlotIn, db: Session = Depends(get_db)):
    business = _ensure_business(db, payload.business_id)
    if payload.professional_id is not None:
        prof = db.get(Professional, payload.professional_id)
        if not prof or prof.business_id != business.id:
            raise HTTPException(404, "Profissional não encontrado")

    try:
        tz = resolve_timezone(business.timezone)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from None
    # naive = horário de parede no fuso do negócio
    row = BlockedSlot(
        business_id=business.id,
        professional_id=payload.professional_id,
        start_time=to_utc(payload.start_time, tz),
        end_time=to_utc(payload.end_time, tz),
        reason=payload.reason,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    log.info(
        "blocked_slot.created",
        blocked_slot_id=row.id,
        business_id=row.business_id,
        professional_id=row.professional_id,
    )
    return _out(row)


@router.get("", response_model=list[BlockedSlotOut])
def list_blocked_slots(
    business_id: int = Query(..., ge=1),
    professional_id: int | None = Query(None, ge=1),
    day: date | None = Query(None, description="Dia LOCAL (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    business = _ensure_business(db, business_id)
    conds = [BlockedSlot.business_id == business.id]
    if professional_id is not None:
        # os do profissional e os do negócio inteiro
        conds.append(
            or_(
                BlockedSlot.professional_id == professional_id,
                BlockedSlot.professional_id.is_(None),
            )
        )
    if day is not None:
        start_utc, end_utc = local_day_bounds_utc(day, resolve_timezone(business.timezone))
        conds += [BlockedSlot.start_time < end_utc, BlockedSlot.end_time > start_utc]

    rows = db.execute(
        select(BlockedSlot).where(and_(*conds)).order_by(BlockedSlot.start_time.asc())
    ).scalars()
    return [_out(r) for r in rows]


@router.delete("/{blocked_slot_id}", status_code=204)
def delete_blocked_slot(blocked_slot_id: int, db: Session = Depends(get_db)):
    row = db.get(BlockedSlot, blocked_slot_id)
    if not row:
        raise HTTPException(404, "Bloqueio não encontrado")
    db.delete(row)
    db.commit()
    log.info("blocked_slot.deleted", blocked_slot_id=blocked_slot_id)
