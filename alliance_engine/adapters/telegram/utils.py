"""
Telegram utilities for safe message formatting
"""

from html import escape

from aiogram.types import Message

from alliance_engine.config.settings import settings

TELEGRAM_MESSAGE_LIMIT = 4096


def escape_html(text: str) -> str:
    """
    Escape HTML special characters to prevent Telegram parsing errors.

    Use for every game-provided name (nations, rulers, alliances) shown
    in an HTML message.

    Args:
        text: The text to escape

    Returns:
        The escaped text safe for HTML parsing in Telegram
    """
    if not text:
        return ""
    return escape(str(text))


def command_args(message: Message) -> list[str]:
    """Whitespace-separated arguments after the command word"""
    parts = (message.text or "").split()
    return parts[1:]


def parse_ids(args: list[str], count: int) -> list[int] | None:
    """
    Parse the first `count` arguments as positive integer ids.

    Returns:
        The ids, or None if any is missing or not numeric
    """
    if len(args) < count:
        return None
    ids = []
    for arg in args[:count]:
        if not arg.isdigit():
            return None
        ids.append(int(arg))
    return ids


def parse_flags(args: list[str]) -> set[str]:
    """Lower-cased word flags among the arguments"""
    return {arg.lower() for arg in args if not arg.isdigit()}


def is_admin(user_id: int) -> bool:
    """True if the Telegram user may edit slot configuration"""
    return user_id in settings.telegram.admin_ids


def format_number(value: float) -> str:
    """Grouped number without decimals"""
    return f"{value:,.0f}"


def split_long_text(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    """
    Split text into Telegram-sized parts.

    Breaks on blank lines first, then on single lines; a single line longer
    than the limit is cut hard.
    """
    if len(text) <= limit:
        return [text]

    parts: list[str] = []
    current = ""
    for block in text.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            parts.append(current)
            current = ""
        if len(block) <= limit:
            current = block
            continue
        for line in block.split("\n"):
            candidate = f"{current}\n{line}" if current else line
            if len(candidate) <= limit:
                current = candidate
                continue
            if current:
                parts.append(current)
            while len(line) > limit:
                parts.append(line[:limit])
                line = line[limit:]
            current = line
    if current:
        parts.append(current)
    return parts


async def answer_long(message: Message, text: str) -> None:
    """Answer with HTML text, split across several messages if needed"""
    for part in split_long_text(text):
        await message.answer(part, parse_mode="HTML")
