"""Ledger bring-up.

Creates the single ledger_state row (admin, oracle, paused=False,
batch_counter=0) the first time it is called.  Later calls leave the
existing row untouched — the ledger is never implicitly re-initialised,
so an admin handed over at runtime is not reset by a restart.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import async_session
from app.ledger.principal import Principal, parse_principal
from app.models.ledger_state import LEDGER_STATE_ID, LedgerState

logger = logging.getLogger("chemtrace.bootstrap")


async def initialise_ledger(
    db: AsyncSession,
    admin: Principal,
    oracle: Principal | None = None,
) -> tuple[LedgerState, bool]:
    """Return (state, created).  `created` is False when the row already existed."""
    existing = await db.get(LedgerState, LEDGER_STATE_ID)
    if existing is not None:
        logger.info(
            "Ledger already initialised; keeping existing admin/oracle",
            extra={"admin": str(existing.admin)},
        )
        return existing, False

    state = LedgerState(
        id=LEDGER_STATE_ID,
        admin=admin,
        oracle=oracle,
        paused=False,
        batch_counter=0,
    )
    db.add(state)
    await db.flush()

    logger.info(
        f"Ledger initialised with admin {admin}",
        extra={"admin": str(admin), "oracle": str(oracle) if oracle else None},
    )
    return state, True


async def bootstrap_from_settings() -> bool:
    """Initialise the ledger from LEDGER_ADMIN / LEDGER_ORACLE if configured.

    Returns True if a new ledger_state row was written.
    """
    admin = parse_principal(settings.ledger_admin)
    if admin is None:
        logger.info("LEDGER_ADMIN not set; skipping ledger bring-up")
        return False

    async with async_session() as db:
        _, created = await initialise_ledger(
            db, admin, parse_principal(settings.ledger_oracle)
        )
        await db.commit()
    return created


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: bring the ledger up once on startup."""
    await bootstrap_from_settings()
    yield
