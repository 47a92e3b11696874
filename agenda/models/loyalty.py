from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agenda.db.base_class import Base

# Ao atingir este valor o cliente ganha o serviço e o contador volta a zero
REWARD_THRESHOLD = 10


class LoyaltyPoint(Base):
    """
    Contador de fidelidade por (cliente, serviço). Ausência de linha = 0 pontos.
    O valor persistido nunca sai de [0, REWARD_THRESHOLD).
    """

    __tablename__ = "loyalty_points"
    __table_args__ = (
        UniqueConstraint("client_id", "service_key", name="uq_loyalty_client_key"),
        CheckConstraint(
            f"points >= 0 AND points < {REWARD_THRESHOLD}", name="ck_loyalty_range"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    service_key: Mapped[str] = mapped_column(String(255), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    client = relationship("Client", back_populates="loyalty_points")
