"""API test fixtures: FastAPI client over a real dispatcher and in-memory SQLite.

Invariants:
    - Every test gets a fresh in-memory SQLite database with all tables
    - app.state.dispatcher is the production wiring (build_dispatcher) over the test DB
    - db_manager patched so the readiness probe sees the test engine
    - `delivered` records every UserCreated/UserRenamed delivered after commit

Design Decisions:
    - Lifespan not run: ASGITransport skips it, the fixture wires app.state instead
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import usecase_core.infrastructure.database as db_module
import usecase_core.models  # noqa: F401
from usecase_core.bootstrap import build_dispatcher, build_event_bus
from usecase_core.db.base import Base
from usecase_core.infrastructure.database import DatabaseSessionManager
from usecase_core.main import app


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
def delivered():
    return []


@pytest.fixture
def event_bus(test_session_factory, delivered):
    bus = build_event_bus(test_session_factory)
    bus.subscribe("UserCreated", delivered.append)
    bus.subscribe("UserRenamed", delivered.append)
    return bus


@pytest.fixture
async def client(test_engine, test_session_factory, event_bus):
    """FastAPI test client with the dispatcher and db_manager wired to the test DB."""
    app.state.dispatcher = build_dispatcher(test_session_factory, bus=event_bus)

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.state.dispatcher = None
    db_module.db_manager = original_manager
