"""
Coordinator slot configuration handlers
"""

import logging

from aiogram import Dispatcher
from aiogram.filters import Command
from aiogram.types import Message

from alliance_engine.adapters.telegram.utils import command_args, escape_html, is_admin, parse_flags
from alliance_engine.core.domain import AllianceEngineError
from alliance_engine.core.engine import AllianceEngine
from alliance_engine.models import get_db

logger = logging.getLogger(__name__)

USAGE = (
    "❌ Usage: <code>/slots nation_id send_tech send_cash get_tech get_cash [dra|nodra]</code>"
)


async def slots_command(message: Message) -> None:
    """Handle /slots command - set a nation's aid slot allocation"""
    user_id = message.from_user.id
    if not is_admin(user_id):
        await message.answer("❌ Only coordinators can edit aid slots.")
        return

    args = command_args(message)
    numbers = [arg for arg in args if arg.isdigit()]
    if len(numbers) < 5:
        await message.answer(USAGE, parse_mode="HTML")
        return

    nation_id, send_tech, send_cash, get_tech, get_cash = (int(n) for n in numbers[:5])
    flags = parse_flags(args)
    has_dra = None
    if "dra" in flags:
        has_dra = True
    elif "nodra" in flags:
        has_dra = False

    try:
        async with get_db() as db:
            engine = AllianceEngine(db)
            update = await engine.update_slot_config(
                nation_id,
                send_tech=send_tech,
                send_cash=send_cash,
                get_tech=get_tech,
                get_cash=get_cash,
                has_dra=has_dra,
            )
    except AllianceEngineError as e:
        logger.warning("Slot update for nation %s rejected: %s", nation_id, e)
        await message.answer(f"❌ {escape_html(str(e))}")
        return

    config = update.config
    text = (
        f"✅ Slots saved for nation #{nation_id}: "
        f"send tech {config.send_tech}, send cash {config.send_cash}, "
        f"get tech {config.get_tech}, get cash {config.get_cash} "
        f"({config.assigned}/{config.slot_limit})"
    )
    if update.under_assigned:
        text += f"\n⚠️ {config.unassigned} slot(s) left unassigned"
    await message.answer(text)


def register_slot_handlers(dp: Dispatcher) -> None:
    """Register slot configuration handlers"""
    dp.message.register(slots_command, Command("slots"))
