"""
Nation categorization handlers
"""

from aiogram import Dispatcher
from aiogram.filters import Command
from aiogram.types import Message

from alliance_engine.adapters.telegram.utils import (
    answer_long,
    command_args,
    escape_html,
    format_number,
    parse_ids,
)
from alliance_engine.core.engine import AllianceEngine, CategorizedNation
from alliance_engine.models import get_db


def format_slots(entry: CategorizedNation) -> str:
    slots = entry.slots
    roles = []
    for label, value in (
        ("send tech", slots.send_tech),
        ("send cash", slots.send_cash),
        ("get tech", slots.get_tech),
        ("get cash", slots.get_cash),
    ):
        if value:
            roles.append(f"{label} {value}")
    return ", ".join(roles) or "no slots"


def format_categorized_nations(alliance_id: int, nations: list[CategorizedNation]) -> str:
    """Render categorized nations as HTML"""
    if not nations:
        return f"❌ No nations found for alliance {alliance_id}."

    lines = [f"📋 <b>Aid roles for alliance {alliance_id}</b>", ""]
    for entry in nations:
        marker = "⚙️" if entry.configured else "📐"
        dra = " DRA" if entry.has_dra else ""
        lines.append(
            f"{marker} <b>{escape_html(entry.nation_name)}</b> "
            f"({escape_html(entry.ruler_name)}, #{entry.id}) - "
            f"{format_slots(entry)}{dra} - {entry.war_status}"
        )
        usage = entry.slots.unassigned
        if usage > 0:
            lines.append(f"    ⚠️ {usage} unassigned slot(s)")
        elif usage < 0:
            lines.append(f"    ⛔ {-usage} slot(s) over the limit")
        if entry.discord_handle:
            lines.append(f"    💬 {escape_html(entry.discord_handle)}")
        lines.append(f"    💪 {format_number(entry.nation.strength)} NS")
    lines.append("")
    lines.append("⚙️ configured, 📐 derived from stats")
    return "\n".join(lines)


async def nations_command(message: Message) -> None:
    """Handle /nations <alliance_id> command"""
    ids = parse_ids(command_args(message), 1)
    if ids is None:
        await message.answer("❌ Usage: <code>/nations alliance_id</code>", parse_mode="HTML")
        return

    async with get_db() as db:
        engine = AllianceEngine(db)
        nations = await engine.get_categorized_nations(ids[0])

    await answer_long(message, format_categorized_nations(ids[0], nations))


def register_nation_handlers(dp: Dispatcher) -> None:
    """Register nation handlers"""
    dp.message.register(nations_command, Command("nations"))
