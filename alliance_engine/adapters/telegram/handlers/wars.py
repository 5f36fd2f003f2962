"""
Nation war handlers
"""

from aiogram import Dispatcher
from aiogram.filters import Command
from aiogram.types import Message

from alliance_engine.adapters.telegram.utils import (
    answer_long,
    command_args,
    escape_html,
    parse_flags,
    parse_ids,
)
from alliance_engine.core.domain import NationWarSummary, StaggerStatus
from alliance_engine.core.engine import AllianceEngine
from alliance_engine.models import get_db

STATUS_EMOJI = {
    StaggerStatus.EMPTY: "⚪",
    StaggerStatus.STAGGERED: "🟢",
    StaggerStatus.SAME_DAY: "🔴",
}


def format_nation_wars(alliance_id: int, summaries: list[NationWarSummary]) -> str:
    """Render war summaries as HTML"""
    if not summaries:
        return f"❌ No matching nations for alliance {alliance_id}."

    lines = [f"⚔️ <b>Wars for alliance {alliance_id}</b>", ""]
    for summary in summaries:
        nation = summary.nation
        lines.append(
            f"{STATUS_EMOJI[summary.stagger_status]} <b>{escape_html(nation.nation_name)}</b> "
            f"(#{nation.id}) - {summary.stagger_status.value}, "
            f"{len(summary.attacking_wars)} off / {len(summary.defending_wars)} def"
        )
        for war in summary.defending_wars:
            lines.append(f"    🛡 from #{war.declaring_id}, ends {escape_html(war.ends_at)}")
    return "\n".join(lines)


async def wars_command(message: Message) -> None:
    """Handle /wars <alliance_id> [peace] [stagger] command"""
    args = command_args(message)
    ids = parse_ids(args, 1)
    if ids is None:
        await message.answer(
            "❌ Usage: <code>/wars alliance_id [peace] [stagger]</code>", parse_mode="HTML"
        )
        return

    flags = parse_flags(args)
    async with get_db() as db:
        engine = AllianceEngine(db)
        summaries = await engine.get_nation_wars(
            ids[0],
            include_peace_mode="peace" in flags,
            needs_stagger="stagger" in flags,
        )

    await answer_long(message, format_nation_wars(ids[0], summaries))


def register_war_handlers(dp: Dispatcher) -> None:
    """Register war handlers"""
    dp.message.register(wars_command, Command("wars"))
