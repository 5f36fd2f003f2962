#!/usr/bin/env python3
"""
Main script to run the Alliance Engine Telegram bot
Handles database initialization and startup
"""

import asyncio
import logging
import sys

from sqlalchemy import func, select

from alliance_engine.adapters.telegram.bot import main as bot_main
from alliance_engine.config.settings import settings
from alliance_engine.models import NationRecord, get_db, init_db


async def initialize_database():
    """Create missing tables and report the stored snapshot"""
    print("🔍 Checking database...")
    await init_db()

    async with get_db() as db:
        count = await db.scalar(select(func.count()).select_from(NationRecord))

    if count:
        print(f"✅ Database ready: {count} nations in snapshot")
    else:
        print("📊 Database ready but empty; load a nation snapshot before querying")


async def start_bot():
    """Start the bot"""
    print("🤖 Starting Telegram bot...")
    try:
        await bot_main()
    except KeyboardInterrupt:
        print("\n🛑 Bot stopped by user")
    except Exception as e:
        print(f"❌ Error starting bot: {e}")
        sys.exit(1)


async def main():
    """Main function"""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    print("🔄 Starting Alliance Engine Telegram Bot...")

    await initialize_database()
    await start_bot()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n🛑 Startup interrupted by user")
        sys.exit(0)
    except Exception as e:
        print(f"❌ Fatal error: {e}")
        sys.exit(1)
