"""
Telegram bot handlers
"""

from aiogram import Dispatcher

from alliance_engine.adapters.telegram.handlers.aid import register_aid_handlers
from alliance_engine.adapters.telegram.handlers.common import register_common_handlers
from alliance_engine.adapters.telegram.handlers.nations import register_nation_handlers
from alliance_engine.adapters.telegram.handlers.slots import register_slot_handlers
from alliance_engine.adapters.telegram.handlers.stagger import register_stagger_handlers
from alliance_engine.adapters.telegram.handlers.wars import register_war_handlers


def register_handlers(dp: Dispatcher) -> None:
    """Register all bot handlers"""
    register_common_handlers(dp)
    register_aid_handlers(dp)
    register_nation_handlers(dp)
    register_war_handlers(dp)
    register_stagger_handlers(dp)
    register_slot_handlers(dp)
