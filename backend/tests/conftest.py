"""
Pytest fixtures for test database, HTTP client and tenant data.

Tests run against an in-memory SQLite database (one shared connection),
with tables created and dropped around every test.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["REDIS_ENABLED"] = "false"

from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from planner.main import app
from planner.db.base import Base
from planner.db.session import get_db
from planner.models import BudgetItem, Client, Company, HotelRecord, TransportRecord

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)


# pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
@event.listens_for(test_engine.sync_engine, "connect")
def _disable_driver_begin(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(test_engine.sync_engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

TENANT_ID = "t1"
OTHER_TENANT_ID = "t2"
CLIENT_ID = "c1"
OTHER_CLIENT_ID = "c2"
DELETED_CLIENT_ID = "c-deleted"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers() -> dict:
    return {"X-Tenant-ID": TENANT_ID}


@pytest_asyncio.fixture
async def tenants(db_session: AsyncSession) -> dict:
    """Two companies: t1 owns c1 and a soft-deleted client, t2 owns c2."""
    db_session.add_all([
        Company(id=TENANT_ID, name="Bloom Weddings"),
        Company(id=OTHER_TENANT_ID, name="Other Planners"),
    ])
    await db_session.flush()
    db_session.add_all([
        Client(id=CLIENT_ID, company_id=TENANT_ID, name="Doe / Smith Wedding"),
        Client(id=OTHER_CLIENT_ID, company_id=OTHER_TENANT_ID, name="Other Wedding"),
        Client(
            id=DELETED_CLIENT_ID,
            company_id=TENANT_ID,
            name="Cancelled Wedding",
            deleted_at=datetime.now(timezone.utc),
        ),
    ])
    await db_session.commit()
    return {"tenant": TENANT_ID, "client": CLIENT_ID, "other_client": OTHER_CLIENT_ID}


@pytest_asyncio.fixture
async def per_guest_item(db_session: AsyncSession, tenants) -> BudgetItem:
    """Catering priced per accepted guest, plus a fixed-price item that must never change."""
    item = BudgetItem(
        client_id=CLIENT_ID,
        category="Catering",
        item="Dinner per plate",
        is_per_guest_item=True,
        per_guest_cost=Decimal("50.00"),
        guest_count=0,
        estimated_cost=Decimal("0"),
    )
    fixed = BudgetItem(
        client_id=CLIENT_ID,
        category="Venue",
        item="Hall rental",
        is_per_guest_item=False,
        estimated_cost=Decimal("2000.00"),
    )
    db_session.add_all([item, fixed])
    await db_session.commit()
    return item


async def hotel_rows(db: AsyncSession, guest_id: str) -> list[HotelRecord]:
    result = await db.execute(select(HotelRecord).where(HotelRecord.guest_id == guest_id))
    return list(result.scalars().all())


async def transport_rows(db: AsyncSession, guest_id: str) -> list[TransportRecord]:
    result = await db.execute(select(TransportRecord).where(TransportRecord.guest_id == guest_id))
    return list(result.scalars().all())
