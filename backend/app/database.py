"""Database engine, session factory, and declarative base.

One DeclarativeBase holds the ledger tables (batches, batch_history,
ledger_state).  The `get_db()` dependency yields a session whose
transaction is committed when the request succeeds and rolled back when
anything raises, so every ledger operation commits or aborts as a unit.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def _engine_options(url: str) -> dict:
    # SQLite (local dev / tests) manages its own pool; pool sizing only
    # applies to server databases.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all ledger models."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session; commit on success, roll back on any error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
