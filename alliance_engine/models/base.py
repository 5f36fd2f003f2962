"""
Declarative base, engine factory and session scope for the snapshot store
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import DateTime, event, func
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import NullPool

from alliance_engine.config.settings import settings

# Applied to every new SQLite connection. Snapshot imports write while bot
# commands read, so readers must not block on the writer.
SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=60000",
)


class Base(DeclarativeBase):
    """Snapshot tables, each stamped with insert and refresh times"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


def async_database_url(url: str) -> str:
    """Switch a plain sqlite URL to the aiosqlite driver"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _apply_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    for pragma in SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def build_engine(url: str, echo: bool = False, **engine_kwargs) -> AsyncEngine:
    """
    Create an async engine for the snapshot store.

    SQLite URLs get the aiosqlite driver, a connection per session unless a
    pool class is given, and the pragmas above on every connection.
    """
    url = async_database_url(url)
    if not url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, **engine_kwargs)

    engine_kwargs.setdefault("poolclass", NullPool)
    engine_kwargs.setdefault("connect_args", {"check_same_thread": False, "timeout": 60})
    new_engine = create_async_engine(url, echo=echo, **engine_kwargs)
    event.listen(new_engine.sync_engine, "connect", _apply_sqlite_pragmas)
    return new_engine


engine = build_engine(settings.database.url, echo=settings.database.echo)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Session for one bot command: committed when the block succeeds,
    rolled back when it raises.

    Usage:
        async with get_db() as db:
            engine = AllianceEngine(db)
            await engine.get_nation_wars(alliance_id)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create any missing snapshot tables"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
