"""BatchLedger — the public operation surface of the ledger.

Usage:
    ledger = await open_ledger(db, clock)
    result = await ledger.create_batch(caller, "Sodium hypochlorite 12%", owner)
    if result.is_error:
        ...  # result.error is a LedgerError

One BatchLedger is built per unit of work (one HTTP request, one CLI
command).  Mutating operations flush into the caller's session; the
session owner commits or rolls back.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.guard import AccessGuard
from app.ledger.history import HistoryLedger
from app.ledger.principal import Principal
from app.ledger.registry import BatchRegistry
from app.ledger.results import LedgerResult
from app.models.batch import Batch
from app.models.batch_history import BatchHistory
from app.models.ledger_state import LEDGER_STATE_ID, LedgerState
from app.utils.clock import Clock


class LedgerNotInitialisedError(Exception):
    """The ledger_state row is missing — run `python -m app.cli init-ledger`."""

    def __init__(self):
        super().__init__("Ledger has not been initialised")


async def load_ledger_state(db: AsyncSession, *, lock: bool = False) -> LedgerState | None:
    stmt = select(LedgerState).where(LedgerState.id == LEDGER_STATE_ID)
    if lock:
        # Re-read under a row lock so counter / admin changes serialise
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


class BatchLedger:

    def __init__(self, db: AsyncSession, state: LedgerState, clock: Clock):
        self.db = db
        self.clock = clock
        self.guard = AccessGuard(state)
        self.history = HistoryLedger(db)
        self.registry = BatchRegistry(db, state, self.guard, self.history, clock)

    async def _lock_state(self) -> None:
        await load_ledger_state(self.db, lock=True)

    # ── Admin surface ────────────────────────────────────────

    async def transfer_admin(
        self, caller: Principal, new_admin: Principal | None
    ) -> LedgerResult[bool]:
        await self._lock_state()
        result = self.guard.transfer_admin(caller, new_admin)
        await self.db.flush()
        return result

    async def set_oracle(
        self, caller: Principal, new_oracle: Principal | None
    ) -> LedgerResult[bool]:
        await self._lock_state()
        result = self.guard.set_oracle(caller, new_oracle)
        await self.db.flush()
        return result

    async def set_paused(self, caller: Principal, flag: bool) -> LedgerResult[bool]:
        await self._lock_state()
        result = self.guard.set_paused(caller, flag)
        await self.db.flush()
        return result

    # ── Batch operations ─────────────────────────────────────

    async def create_batch(
        self, caller: Principal, composition: str, owner: Principal | None
    ) -> LedgerResult[int]:
        await self._lock_state()
        return await self.registry.create_batch(caller, composition, owner)

    async def update_batch_status(
        self, caller: Principal, batch_id: int, new_stage: int, metadata: str
    ) -> LedgerResult[bool]:
        return await self.registry.update_batch_status(caller, batch_id, new_stage, metadata)

    async def transfer_batch(
        self, caller: Principal, batch_id: int, new_owner: Principal | None
    ) -> LedgerResult[bool]:
        return await self.registry.transfer_batch(caller, batch_id, new_owner)

    async def deactivate_batch(self, caller: Principal, batch_id: int) -> LedgerResult[bool]:
        return await self.registry.deactivate_batch(caller, batch_id)

    # ── Reads ────────────────────────────────────────────────

    async def get_batch(self, batch_id: int) -> LedgerResult[Batch]:
        return await self.registry.get_batch(batch_id)

    async def list_batches(self, after: int = 0, limit: int = 50) -> list[Batch]:
        return await self.registry.list_batches(after=after, limit=limit)

    async def get_batch_history(self, batch_id: int, index: int) -> LedgerResult[BatchHistory]:
        return await self.history.get(batch_id, index)

    async def get_batch_trail(self, batch_id: int) -> LedgerResult[list[BatchHistory]]:
        return await self.history.records(batch_id)

    def get_batch_counter(self) -> int:
        return self.registry.batch_counter

    def get_admin(self) -> Principal:
        return self.guard.admin

    def get_oracle(self) -> Principal | None:
        return self.guard.oracle

    def is_paused(self) -> bool:
        return self.guard.paused


async def open_ledger(db: AsyncSession, clock: Clock) -> BatchLedger:
    """Bind a BatchLedger to `db`.  Raises if the ledger was never initialised."""
    state = await load_ledger_state(db)
    if state is None:
        raise LedgerNotInitialisedError()
    return BatchLedger(db, state, clock)
