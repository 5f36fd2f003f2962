"""
Test configuration and fixtures
"""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from alliance_engine.core.time_windows import TZ_CENTRAL
from alliance_engine.models.base import build_engine, init_db

# Reference time for every window calculation in the suite
NOW = datetime(2025, 1, 8, 12, 0, tzinfo=TZ_CENTRAL)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
async def test_engine():
    """Create a test database engine"""
    # One shared in-memory connection per test
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Create a database session for each test"""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
