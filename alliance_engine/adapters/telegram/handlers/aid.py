"""
Aid recommendation handlers
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
from alliance_engine.core.aid_matcher import RecommendationKind
from alliance_engine.core.domain import AidType
from alliance_engine.core.engine import AidRecommendations, AllianceEngine
from alliance_engine.models import get_db

KIND_EMOJI = {
    RecommendationKind.REESTABLISH: "🔁",
    RecommendationKind.INTERNAL: "🤝",
    RecommendationKind.CROSS_ALLIANCE: "🌐",
}


def format_aid_recommendations(result: AidRecommendations) -> str:
    """Render aid recommendations as HTML"""
    counts = result.slot_counts
    lines = [
        f"💰 <b>Aid recommendations for alliance {result.alliance_id}</b>",
        "",
        f"<b>Cash:</b> {counts.total_send_cash} send / {counts.total_get_cash} get "
        f"({counts.active_send_cash} active)",
        f"<b>Tech:</b> {counts.total_send_tech} send / {counts.total_get_tech} get "
        f"({counts.active_send_tech} active)",
        f"<b>Unassigned slots:</b> {counts.total_unassigned}",
    ]
    if counts.parked_send_cash or counts.parked_send_tech:
        lines.append(
            f"<b>Parked by war mode:</b> {counts.parked_send_cash} cash, "
            f"{counts.parked_send_tech} tech"
        )
    lines.append("")

    if not result.recommendations:
        lines.append("No new aid pairings available.")
        return "\n".join(lines)

    for aid_type in (AidType.CASH, AidType.TECHNOLOGY):
        recommendations = [r for r in result.recommendations if r.aid_type is aid_type]
        if not recommendations:
            continue
        lines.append(f"<b>{aid_type.value.title()}</b>")
        for recommendation in recommendations:
            lines.append(
                f"{KIND_EMOJI[recommendation.kind]} P{recommendation.priority} "
                f"{escape_html(recommendation.reason)}"
            )
        lines.append("")
    return "\n".join(lines).rstrip()


async def aid_command(message: Message) -> None:
    """Handle /aid <alliance_id> [cross] command"""
    args = command_args(message)
    ids = parse_ids(args, 1)
    if ids is None:
        await message.answer(
            "❌ Usage: <code>/aid alliance_id [cross]</code>", parse_mode="HTML"
        )
        return

    cross = "cross" in parse_flags(args)
    async with get_db() as db:
        engine = AllianceEngine(db)
        result = await engine.get_aid_recommendations(ids[0], cross_alliance_enabled=cross)

    await answer_long(message, format_aid_recommendations(result))


def register_aid_handlers(dp: Dispatcher) -> None:
    """Register aid handlers"""
    dp.message.register(aid_command, Command("aid"))
