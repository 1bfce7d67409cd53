"""
Pytest fixtures for testing.

Provides:
- Async database session with rollback (SQLite in memory)
- Adapter fixture running contract tests against every adapter
- Group registry and feature service wired to the memory adapter
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from flipgate.actor import Actor
from flipgate.backends import DatabaseAdapter, MemoryAdapter
from flipgate.groups import GroupRegistry
from flipgate.models import Base
from flipgate.rules import Condition
from flipgate.service import FeatureService


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2023-11-14T22:13:20Z, a fixed clock for percentage_of_time
FIXED_NOW = 1_700_000_000.0


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Create database session with automatic rollback.

    Each test gets a fresh transaction that's rolled back after.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(params=["memory", "database"])
async def adapter(request, db: AsyncSession):
    """Every adapter, for tests of the storage contract."""
    if request.param == "memory":
        return MemoryAdapter()
    return DatabaseAdapter(db)


@pytest.fixture
def memory_adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def groups() -> GroupRegistry:
    registry = GroupRegistry()
    registry.register("premium", Condition(
        {"type": "property", "value": "plan"},
        {"type": "operator", "value": "eq"},
        {"type": "string", "value": "premium"},
    ))

    @registry.register("staff")
    def is_staff(actor: Actor) -> bool:
        return actor.properties.get("staff", False)

    return registry


@pytest.fixture
def service(memory_adapter: MemoryAdapter, groups: GroupRegistry) -> FeatureService:
    return FeatureService(memory_adapter, groups=groups, clock=lambda: FIXED_NOW)
