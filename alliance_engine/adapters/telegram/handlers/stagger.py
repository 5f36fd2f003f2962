"""
Stagger eligibility handlers
"""

from aiogram import Dispatcher
from aiogram.filters import Command
from aiogram.types import Message

from alliance_engine.adapters.telegram.utils import (
    answer_long,
    command_args,
    escape_html,
    format_number,
    parse_flags,
    parse_ids,
)
from alliance_engine.core.domain import InvalidRequestError, parse_grouped_number
from alliance_engine.core.engine import AllianceEngine, StaggerEligibility
from alliance_engine.models import get_db


SELL_DOWN_FLAG = "selldown"
USAGE = (
    "❌ Usage: <code>/stagger friendly_id target_id [anarchy] [peace] [full] "
    "[selldown[=military_ns]]</code>"
)


def parse_sell_down(flags: set[str]) -> tuple[bool, float]:
    """Read ``selldown`` or ``selldown=<military strength>`` from the flags"""
    for flag in flags:
        name, _, value = flag.partition("=")
        if name == SELL_DOWN_FLAG:
            return True, parse_grouped_number(value)
    return False, 0.0


def format_stagger_eligibility(eligibility: list[StaggerEligibility]) -> str:
    """Render stagger eligibility as HTML"""
    if not eligibility:
        return "✅ No targets need staggering right now."

    lines = ["🎯 <b>Stagger targets</b>", ""]
    for entry in eligibility:
        defender = entry.defending_nation
        nation = defender.nation
        lines.append(
            f"<b>{escape_html(nation.nation_name)}</b> (#{nation.id}) - "
            f"{format_number(nation.strength)} NS, "
            f"{defender.open_defensive_slots} open slot(s), {defender.stagger_status.value}"
        )
        for attacker in entry.eligible_attackers:
            lines.append(
                f"    {attacker.rank}. {escape_html(attacker.nation.nation_name)} "
                f"(#{attacker.nation.id}) {attacker.strength_ratio:.2f}x, "
                f"{attacker.current_attacking_wars} off"
            )
        lines.append("")
    return "\n".join(lines).rstrip()


async def stagger_command(message: Message) -> None:
    """Handle /stagger <friendly_id> <target_id> [anarchy] [peace] [full] [selldown] command"""
    args = command_args(message)
    ids = parse_ids(args, 2)
    if ids is None:
        await message.answer(USAGE, parse_mode="HTML")
        return

    flags = parse_flags(args)
    sell_down, military_strength = parse_sell_down(flags)
    try:
        async with get_db() as db:
            engine = AllianceEngine(db)
            eligibility = await engine.get_stagger_eligibility(
                ids[0],
                ids[1],
                hide_anarchy="anarchy" in flags,
                hide_peace_mode="peace" in flags,
                include_full_targets="full" in flags,
                sell_down=sell_down,
                military_strength=military_strength,
            )
    except InvalidRequestError as e:
        await message.answer(f"❌ {escape_html(str(e))}")
        return

    await answer_long(message, format_stagger_eligibility(eligibility))


def register_stagger_handlers(dp: Dispatcher) -> None:
    """Register stagger handlers"""
    dp.message.register(stagger_command, Command("stagger"))
