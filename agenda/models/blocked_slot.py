from __future__ import annotations

import datetime as dt

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agenda.db.base_class import Base
from agenda.db.types import UTCDateTime


class BlockedSlot(Base):
    """Bloqueio avulso. professional_id NULL = bloqueia o negócio inteiro."""

    __tablename__ = "blocked_slots"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_blocked_time_order"),
        Index("ix_blocked_business_start", "business_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(
        ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False
    )
    professional_id: Mapped[int | None] = mapped_column(
        ForeignKey("professionals.id", ondelete="CASCADE"), index=True
    )
    start_time: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    end_time: Mapped[dt.datetime] = mapped_column(UTCDateTime(), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))
