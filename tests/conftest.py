"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Tests use a fresh in-memory SQLite database per test, created with
    the same engine factory as the application (foreign keys on, FTS5
    index created alongside the notes table).
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from notecore.backend.core.database import create_engine_for_url, init_database
from notecore.backend.models.base import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Database Engine Fixtures
# =============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory database with all tables and the search index.

    StaticPool keeps a single connection so every session sees the
    same in-memory database.
    """
    engine = create_engine_for_url(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_database(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    db_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for a single test.

    Usage:
        async def test_create_note(db_session: AsyncSession):
            repo = NoteRepository(db_session)
            note = await repo.create_note(title="T", content="")
            assert note.id is not None
    """
    async with db_session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Data Helpers
# =============================================================================


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def at(seconds: int) -> datetime:
    """Naive UTC timestamp `seconds` after a fixed base time."""
    return BASE_TIME + timedelta(seconds=seconds)


@pytest.fixture
def make_note(db_session: AsyncSession):
    """
    Insert a note row (and its index entry) with explicit timestamps.

    Usage:
        await make_note("b", updated=5, title="Beta")
    """
    from notecore.backend.core.markdown import derive_summary
    from notecore.backend.repositories.note import NoteRepository

    repo = NoteRepository(db_session)

    async def _make(
        note_id: str,
        updated: int = 0,
        title: str = "Untitled",
        content: str = "",
        **extra: Any,
    ):
        return await repo.create_note(
            id=note_id,
            title=title,
            content=content,
            summary=derive_summary(content),
            created_at=at(min(updated, 0)),
            updated_at=at(updated),
            **extra,
        )

    return _make
