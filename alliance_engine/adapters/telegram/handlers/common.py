"""
Common handlers for all users
"""

from aiogram import Dispatcher
from aiogram.filters import Command
from aiogram.types import Message

from alliance_engine.adapters.telegram.utils import is_admin

HELP_TEXT = (
    "<b>Commands:</b>\n\n"
    "/aid &lt;alliance_id&gt; [cross] - aid recommendations\n"
    "/nations &lt;alliance_id&gt; - aid slot roles per nation\n"
    "/wars &lt;alliance_id&gt; [peace] [stagger] - active wars per nation\n"
    "/stagger &lt;friendly_id&gt; &lt;target_id&gt; [anarchy] [peace] [full] [selldown=ns] - "
    "attackers for under-staggered targets\n"
    "/help - show this help"
)

ADMIN_HELP_TEXT = (
    "\n\n<b>Coordinator commands:</b>\n"
    "/slots &lt;nation_id&gt; &lt;send_tech&gt; &lt;send_cash&gt; &lt;get_tech&gt; "
    "&lt;get_cash&gt; [dra|nodra] - set aid slots"
)


async def start_command(message: Message) -> None:
    """Handle /start command"""
    await message.answer(
        "👋 Welcome to <b>Alliance Engine</b>!\n\n"
        "I match foreign aid slots inside your alliance and help keep "
        "enemy nations' defensive wars staggered.\n\n"
        "Use /help to see the available commands.",
        parse_mode="HTML",
    )


async def help_command(message: Message) -> None:
    """Handle /help command"""
    text = HELP_TEXT
    if is_admin(message.from_user.id):
        text += ADMIN_HELP_TEXT
    await message.answer(text, parse_mode="HTML")


def register_common_handlers(dp: Dispatcher) -> None:
    """Register common handlers"""
    dp.message.register(start_command, Command("start"))
    dp.message.register(help_command, Command("help"))
