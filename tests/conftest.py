"""Pytest fixtures for staffing engine tests."""

from __future__ import annotations

from datetime import date
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.event import listens_for
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from staffing_engine.models import Base, Event, StaffMember
from staffing_engine.stores.sql import SqlRecordStore

# In-memory SQLite shared across connections of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    """Create a fresh test database engine per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests inside the transaction.
    @listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def store(session: AsyncSession) -> SqlRecordStore:
    return SqlRecordStore(session)


@pytest_asyncio.fixture
async def staff(session: AsyncSession) -> dict[str, StaffMember]:
    """Create three staff members."""
    members = {
        "ana": StaffMember(id=uuid4(), first_name="Ana", last_name="Lopez"),
        "beto": StaffMember(id=uuid4(), first_name="Beto", last_name="Ruiz"),
        "carla": StaffMember(id=uuid4(), first_name="Carla", last_name="Diaz"),
    }
    session.add_all(members.values())
    await session.flush()
    return members


@pytest_asyncio.fixture
async def event(session: AsyncSession) -> Event:
    """Create an event on Wednesday 2024-06-12."""
    event = Event(id=uuid4(), name="Garcia Wedding", event_date=date(2024, 6, 12))
    session.add(event)
    await session.flush()
    return event
