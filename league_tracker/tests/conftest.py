"""
Shared pytest configuration for league tracker tests.

Defaults to an in-memory SQLite database (aiosqlite). Point TEST_DATABASE_URL
at PostgreSQL to run the same tests against production's engine.

SAFETY: This module REFUSES to run against any non-memory database whose name
does not contain the substring "test". Every test drops all tables on teardown.
"""

import os

# Disable rate limiting before the app's routes are imported
os.environ.setdefault("ENV", "test")

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from league_tracker.database.db import Base  # noqa: E402


def _resolve_test_database_url() -> str:
    """Build the test database URL with safety checks.

    Raises ``RuntimeError`` if the resolved URL does not point to an
    in-memory database or a database whose name contains "test".
    """
    url = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

    db_name = url.rsplit("/", 1)[-1].split("?")[0]  # strip query params
    if db_name != ":memory:" and "test" not in db_name.lower():
        raise RuntimeError(
            f"\n{'=' * 70}\n"
            f"  SAFETY: Refusing to run tests against database '{db_name}'.\n"
            f"  The database name must contain 'test' to prevent accidental\n"
            f"  data loss in development or production databases.\n\n"
            f"  Fix: unset TEST_DATABASE_URL (in-memory SQLite) or point it at\n"
            f"  a test database, e.g. postgresql+asyncpg://.../leaguetracker_test\n"
            f"{'=' * 70}"
        )

    return url


TEST_DATABASE_URL = _resolve_test_database_url()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine with all tables; drop them afterwards."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        # Ensure models are imported so Base.metadata includes all tables
        from league_tracker.database import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()
