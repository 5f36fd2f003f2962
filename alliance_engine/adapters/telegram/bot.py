"""
Telegram bot wiring: dispatcher, command menu and polling
"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand

from alliance_engine.adapters.telegram.handlers import register_handlers
from alliance_engine.config.settings import settings
from alliance_engine.models import init_db

logger = logging.getLogger(__name__)

# Shown in the client's command menu; /slots is listed but admin-gated
BOT_COMMANDS = [
    BotCommand(command="aid", description="Aid pairings for an alliance"),
    BotCommand(command="nations", description="Slot roles per nation"),
    BotCommand(command="wars", description="Active wars and stagger state"),
    BotCommand(command="stagger", description="Attackers for under-staggered targets"),
    BotCommand(command="slots", description="Edit a nation's aid slots"),
    BotCommand(command="help", description="Command reference"),
]


class TelegramBot:
    """Coordinator-facing bot over the alliance engine"""

    def __init__(self, token: str | None = None):
        token = token or settings.telegram.token
        if not token:
            raise ValueError("Telegram bot token is not configured")

        self.bot = Bot(token=token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
        self.dp = Dispatcher()

        register_handlers(self.dp)
        self.dp.startup.register(self.on_startup)
        self.dp.shutdown.register(self.on_shutdown)

    async def on_startup(self) -> None:
        """Create tables and publish the command menu before polling"""
        await init_db()
        await self.bot.set_my_commands(BOT_COMMANDS)
        logger.info("Published %d bot commands", len(BOT_COMMANDS))

    async def on_shutdown(self) -> None:
        logger.info("Telegram bot stopped")

    async def run(self) -> None:
        """Poll for updates until cancelled; the bot session is closed on exit"""
        logger.info("Starting Telegram bot...")
        await self.dp.start_polling(self.bot)


async def main():
    """Configure logging and run the bot"""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    await TelegramBot().run()


if __name__ == "__main__":
    asyncio.run(main())
