"""Pytest configuration and fixtures for ChemTrace tests.

Provides reusable fixtures for the database, the ledger, a deterministic
clock, and authenticated HTTP clients.

Tests run against an in-memory SQLite database (aiosqlite); each test
gets a fresh schema, so no state leaks between tests.
"""

import os

# Must be set before anything imports app.config / app.database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DEBUG", "false")

from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 — register tables and immutability listeners
from app.auth.jwt import create_access_token
from app.database import Base, get_db
from app.ledger.principal import Principal
from app.ledger.service import BatchLedger, open_ledger
from app.main import app
from app.models.ledger_state import LedgerState
from app.services.bootstrap import initialise_ledger
from app.utils.clock import FixedClock, get_clock


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with the ledger schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

        # Rollback transaction (no changes persist)
        await session.rollback()


# ── Principals ───────────────────────────────────────────────────

@pytest.fixture
def admin() -> Principal:
    return Principal("SP1ADMIN")


@pytest.fixture
def oracle() -> Principal:
    return Principal("SP2ORACLE")


@pytest.fixture
def manufacturer() -> Principal:
    return Principal("SP3MANUFACTURER")


@pytest.fixture
def distributor() -> Principal:
    return Principal("SP4DISTRIBUTOR")


@pytest.fixture
def stranger() -> Principal:
    return Principal("SP5STRANGER")


# ── Ledger Fixtures ──────────────────────────────────────────────

@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(100)


@pytest_asyncio.fixture
async def ledger_state(db_session: AsyncSession, admin: Principal) -> LedgerState:
    """Initialised ledger: admin set, no oracle, not paused, counter 0."""
    state, _ = await initialise_ledger(db_session, admin)
    return state


@pytest_asyncio.fixture
async def ledger(
    db_session: AsyncSession,
    ledger_state: LedgerState,
    clock: FixedClock,
) -> BatchLedger:
    return await open_ledger(db_session, clock)


# ── HTTP Client ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(db_session, clock) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database and clock dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[Principal], dict]:
    """Build authorization headers for a principal."""

    def _headers(principal: Principal) -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(principal))}"}

    return _headers


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "ledger: Ledger core tests against the database")
    config.addinivalue_line("markers", "api: HTTP API tests")
