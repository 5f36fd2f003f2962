"""
Nation snapshot model
"""

from sqlalchemy import BigInteger, Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alliance_engine.core.domain import Activity, Nation
from alliance_engine.models.base import Base


class NationRecord(Base):
    """Latest known snapshot of a nation, keyed by its game id"""

    __tablename__ = "nations"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    ruler_name: Mapped[str] = mapped_column(String(255), nullable=False)
    nation_name: Mapped[str] = mapped_column(String(255), nullable=False)
    alliance_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    alliance_name: Mapped[str] = mapped_column(String(255), default="")

    # Economic and military stats
    strength: Mapped[float] = mapped_column(Float, default=0.0)
    technology: Mapped[float] = mapped_column(Float, default=0.0)
    infrastructure: Mapped[float] = mapped_column(Float, default=0.0)
    land: Mapped[float] = mapped_column(Float, default=0.0)
    nuclear_weapons: Mapped[int] = mapped_column(Integer, default=0)
    warchest: Mapped[float | None] = mapped_column(Float, nullable=True)
    warchest_age_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)

    activity: Mapped[str] = mapped_column(String(64), default=Activity.LAST_3_DAYS.value)
    war_mode: Mapped[bool] = mapped_column(Boolean, default=True)
    government_type: Mapped[str] = mapped_column(String(64), default="")
    discord_handle: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def to_domain(self) -> Nation:
        """Convert to the immutable domain snapshot"""
        return Nation(
            id=self.id,
            ruler_name=self.ruler_name,
            nation_name=self.nation_name,
            alliance_id=self.alliance_id,
            alliance_name=self.alliance_name or "",
            strength=self.strength or 0.0,
            technology=self.technology or 0.0,
            infrastructure=self.infrastructure or 0.0,
            land=self.land or 0.0,
            activity=Activity.parse(self.activity),
            war_mode=bool(self.war_mode),
            nuclear_weapons=self.nuclear_weapons or 0,
            government_type=self.government_type or "",
            warchest=self.warchest,
            warchest_age_days=self.warchest_age_days,
            rank=self.rank,
            discord_handle=self.discord_handle,
        )

    def __repr__(self) -> str:
        return f"<NationRecord(id={self.id}, nation_name='{self.nation_name}')>"
