"""
War model
"""

from sqlalchemy import BigInteger, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alliance_engine.core.domain import War, WarStatus
from alliance_engine.models.base import Base


class WarRecord(Base):
    """War between two nations as published by the game"""

    __tablename__ = "wars"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    declaring_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    receiving_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    declaring_alliance_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    receiving_alliance_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=WarStatus.ACTIVE.value)
    # Raw game timestamps, Central time
    started_at: Mapped[str] = mapped_column(String(64), default="")
    ends_at: Mapped[str] = mapped_column(String(64), nullable=False)

    attack_percent: Mapped[float] = mapped_column(Float, default=0.0)
    defend_percent: Mapped[float] = mapped_column(Float, default=0.0)

    def to_domain(self) -> War:
        return War(
            war_id=self.id,
            declaring_id=self.declaring_id,
            receiving_id=self.receiving_id,
            ends_at=self.ends_at,
            started_at=self.started_at or "",
            status=WarStatus.parse(self.status),
            declaring_alliance_id=self.declaring_alliance_id,
            receiving_alliance_id=self.receiving_alliance_id,
            attack_percent=self.attack_percent or 0.0,
            defend_percent=self.defend_percent or 0.0,
        )

    def __repr__(self) -> str:
        return (
            f"<WarRecord(id={self.id}, declaring_id={self.declaring_id}, "
            f"receiving_id={self.receiving_id}, ends_at='{self.ends_at}')>"
        )
