"""
Database models
"""

from alliance_engine.models.base import Base, get_db, init_db
from alliance_engine.models.aid_offer import AidOfferRecord
from alliance_engine.models.nation import NationRecord
from alliance_engine.models.nation_config import NationConfigRecord
from alliance_engine.models.war import WarRecord

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "AidOfferRecord",
    "NationRecord",
    "NationConfigRecord",
    "WarRecord",
]
