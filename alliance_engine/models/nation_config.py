"""
Coordinator-assigned aid slot configuration
"""

from sqlalchemy import BigInteger, Boolean, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from alliance_engine.core.domain import MAX_PRIORITY, AidSlotConfig
from alliance_engine.models.base import Base


class NationConfigRecord(Base):
    """Explicit slot allocation for one nation"""

    __tablename__ = "nation_configs"

    nation_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("nations.id"), primary_key=True, autoincrement=False
    )

    send_tech: Mapped[int] = mapped_column(Integer, default=0)
    send_cash: Mapped[int] = mapped_column(Integer, default=0)
    get_tech: Mapped[int] = mapped_column(Integer, default=0)
    get_cash: Mapped[int] = mapped_column(Integer, default=0)
    send_priority: Mapped[int] = mapped_column(Integer, default=MAX_PRIORITY)
    receive_priority: Mapped[int] = mapped_column(Integer, default=MAX_PRIORITY)
    has_dra: Mapped[bool] = mapped_column(Boolean, default=False)

    def to_domain(self) -> AidSlotConfig:
        return AidSlotConfig(
            send_tech=self.send_tech or 0,
            send_cash=self.send_cash or 0,
            get_tech=self.get_tech or 0,
            get_cash=self.get_cash or 0,
            send_priority=self.send_priority or MAX_PRIORITY,
            receive_priority=self.receive_priority or MAX_PRIORITY,
            has_dra=bool(self.has_dra),
        )

    def __repr__(self) -> str:
        return f"<NationConfigRecord(nation_id={self.nation_id})>"
