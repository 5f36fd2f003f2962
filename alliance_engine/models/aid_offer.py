"""
Aid offer model
"""

from sqlalchemy import BigInteger, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alliance_engine.core.domain import AidOffer, OfferStatus
from alliance_engine.models.base import Base


class AidOfferRecord(Base):
    """Foreign aid offer as published by the game"""

    __tablename__ = "aid_offers"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    # Sides may belong to nations outside the stored snapshot
    sender_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    recipient_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    sender_alliance_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recipient_alliance_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    money: Mapped[float] = mapped_column(Float, default=0.0)
    technology: Mapped[float] = mapped_column(Float, default=0.0)
    soldiers: Mapped[int] = mapped_column(Integer, default=0)
    reason: Mapped[str] = mapped_column(Text, default="")

    # Raw game timestamp, Central time
    offered_at: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=OfferStatus.ACCEPTED.value)

    def to_domain(self) -> AidOffer:
        return AidOffer(
            offer_id=self.id,
            sender_id=self.sender_id,
            recipient_id=self.recipient_id,
            created_at=self.offered_at,
            money=self.money or 0.0,
            technology=self.technology or 0.0,
            soldiers=self.soldiers or 0,
            reason=self.reason or "",
            status=OfferStatus.parse(self.status),
            sender_alliance_id=self.sender_alliance_id,
            recipient_alliance_id=self.recipient_alliance_id,
        )

    def __repr__(self) -> str:
        return (
            f"<AidOfferRecord(id={self.id}, sender_id={self.sender_id}, "
            f"recipient_id={self.recipient_id}, status='{self.status}')>"
        )
