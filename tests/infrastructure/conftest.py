"""Infrastructure test fixtures: fresh in-memory SQLite per test.

Invariants:
    - Every test gets its own engine with all tables created
    - Models are imported before create_all so Base.metadata is complete
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import usecase_core.models  # noqa: F401
from usecase_core.db.base import Base
from usecase_core.infrastructure.persistence import SqlAlchemyPersistenceProvider


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def sql_provider(test_session_factory):
    return SqlAlchemyPersistenceProvider(test_session_factory)
