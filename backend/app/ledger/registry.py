"""BatchRegistry — batch lifecycle operations.

Each operation runs its guard checks in a fixed order and returns a
LedgerResult without touching state if any check fails.  Only after every
check has passed does it mutate the batch row and stage exactly one
history append, then flush both together.

Check order (pause and input shape before existence and authorization,
so a disabled or malformed request never reveals whether a batch exists):

    create_batch         PAUSED → ZERO_ADDRESS → ALREADY_EXISTS
    update_batch_status  PAUSED → INVALID_STAGE → INVALID_BATCH → NOT_AUTHORIZED
    transfer_batch       PAUSED → ZERO_ADDRESS → INVALID_BATCH → NOT_AUTHORIZED
    deactivate_batch     NOT_AUTHORIZED → INVALID_BATCH        (ignores pause)
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.guard import AccessGuard
from app.ledger.history import HistoryLedger
from app.ledger.principal import Principal
from app.ledger.results import LedgerError, LedgerResult, rejected
from app.ledger.stages import Stage, is_valid_stage
from app.models.batch import MAX_BATCH_ID, Batch, is_batch_id
from app.models.ledger_state import LedgerState
from app.utils.clock import Clock

logger = logging.getLogger("chemtrace.ledger")

CREATED_METADATA = "Batch created"
TRANSFERRED_METADATA = "Ownership transferred"


class BatchRegistry:

    def __init__(
        self,
        db: AsyncSession,
        state: LedgerState,
        guard: AccessGuard,
        history: HistoryLedger,
        clock: Clock,
    ):
        self.db = db
        self._state = state
        self.guard = guard
        self.history = history
        self.clock = clock

    @property
    def batch_counter(self) -> int:
        return self._state.batch_counter

    async def _load(self, batch_id: int, *, lock: bool = False) -> Batch | None:
        if not is_batch_id(batch_id):
            return None
        stmt = select(Batch).where(Batch.id == batch_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _load_active(self, batch_id: int) -> Batch | None:
        batch = await self._load(batch_id, lock=True)
        if batch is None or not batch.is_active:
            return None
        return batch

    # ── Create ───────────────────────────────────────────────

    async def create_batch(
        self,
        caller: Principal,
        composition: str,
        owner: Principal | None,
    ) -> LedgerResult[int]:
        if not self.guard.can_mutate():
            return rejected("create_batch", LedgerError.PAUSED, caller)
        if owner is None:
            return rejected("create_batch", LedgerError.ZERO_ADDRESS, caller)

        batch_id = self._state.batch_counter + 1
        if await self._load(batch_id) is not None:
            # Unreachable while ids are only ever allocated here
            return rejected(
                "create_batch", LedgerError.ALREADY_EXISTS, caller, batch_id=batch_id
            )

        now = self.clock.now()
        batch = Batch(
            id=batch_id,
            manufacturer=caller,
            composition=composition,
            origin_timestamp=now,
            current_owner=owner,
            current_stage=int(Stage.CREATED),
            last_update=now,
            is_active=True,
            next_history_index=0,
        )
        self.db.add(batch)
        self.history.append(
            batch,
            stage=Stage.CREATED,
            owner=owner,
            timestamp=now,
            metadata=CREATED_METADATA,
        )
        self._state.batch_counter = batch_id
        await self.db.flush()

        logger.info(
            f"Batch {batch_id} created for {owner}",
            extra={"operation": "create_batch", "batch_id": batch_id, "caller": str(caller)},
        )
        return LedgerResult.success(batch_id)

    # ── Stage update ─────────────────────────────────────────

    async def update_batch_status(
        self,
        caller: Principal,
        batch_id: int,
        new_stage: int,
        metadata: str,
    ) -> LedgerResult[bool]:
        if not self.guard.can_mutate():
            return rejected("update_batch_status", LedgerError.PAUSED, caller)
        if not is_valid_stage(new_stage):
            return rejected(
                "update_batch_status", LedgerError.INVALID_STAGE, caller, stage=new_stage
            )

        batch = await self._load_active(batch_id)
        if batch is None:
            return rejected(
                "update_batch_status", LedgerError.INVALID_BATCH, caller, batch_id=batch_id
            )
        if not self.guard.can_authorize_update(caller, batch.current_owner):
            return rejected(
                "update_batch_status", LedgerError.NOT_AUTHORIZED, caller, batch_id=batch_id
            )

        stage = Stage(new_stage)
        now = self.clock.now()
        batch.current_stage = int(stage)
        batch.last_update = now
        batch.is_active = stage != Stage.REJECTED
        index = self.history.append(
            batch,
            stage=stage,
            owner=batch.current_owner,
            timestamp=now,
            metadata=metadata,
        )
        await self.db.flush()

        logger.info(
            f"Batch {batch_id} moved to {stage.name} (history #{index})",
            extra={"operation": "update_batch_status", "batch_id": batch_id, "caller": str(caller)},
        )
        return LedgerResult.success(True)

    # ── Ownership transfer ───────────────────────────────────

    async def transfer_batch(
        self,
        caller: Principal,
        batch_id: int,
        new_owner: Principal | None,
    ) -> LedgerResult[bool]:
        if not self.guard.can_mutate():
            return rejected("transfer_batch", LedgerError.PAUSED, caller)
        if new_owner is None:
            return rejected("transfer_batch", LedgerError.ZERO_ADDRESS, caller)

        batch = await self._load_active(batch_id)
        if batch is None:
            return rejected(
                "transfer_batch", LedgerError.INVALID_BATCH, caller, batch_id=batch_id
            )
        if not self.guard.can_transfer(caller, batch.current_owner):
            return rejected(
                "transfer_batch", LedgerError.NOT_AUTHORIZED, caller, batch_id=batch_id
            )

        now = self.clock.now()
        batch.current_owner = new_owner
        batch.last_update = now
        index = self.history.append(
            batch,
            stage=batch.current_stage,
            owner=new_owner,
            timestamp=now,
            metadata=TRANSFERRED_METADATA,
        )
        await self.db.flush()

        logger.info(
            f"Batch {batch_id} transferred to {new_owner} (history #{index})",
            extra={"operation": "transfer_batch", "batch_id": batch_id, "caller": str(caller)},
        )
        return LedgerResult.success(True)

    # ── Deactivation ─────────────────────────────────────────

    async def deactivate_batch(self, caller: Principal, batch_id: int) -> LedgerResult[bool]:
        """Admin-only, irreversible.  Writes no history record."""
        if not self.guard.is_admin(caller):
            return rejected(
                "deactivate_batch", LedgerError.NOT_AUTHORIZED, caller, batch_id=batch_id
            )

        batch = await self._load_active(batch_id)
        if batch is None:
            return rejected(
                "deactivate_batch", LedgerError.INVALID_BATCH, caller, batch_id=batch_id
            )

        batch.is_active = False
        batch.last_update = self.clock.now()
        await self.db.flush()

        logger.info(
            f"Batch {batch_id} deactivated",
            extra={"operation": "deactivate_batch", "batch_id": batch_id, "caller": str(caller)},
        )
        return LedgerResult.success(True)

    # ── Reads ────────────────────────────────────────────────

    async def get_batch(self, batch_id: int) -> LedgerResult[Batch]:
        batch = await self._load(batch_id)
        if batch is None:
            return LedgerResult.failure(LedgerError.INVALID_BATCH)
        return LedgerResult.success(batch)

    async def list_batches(self, after: int = 0, limit: int = 50) -> list[Batch]:
        """Batches with id > `after`, oldest first.  Ids are dense, so the
        last id of one page is the cursor for the next."""
        if after >= MAX_BATCH_ID:
            return []
        after = max(after, 0)
        result = await self.db.execute(
            select(Batch)
            .where(Batch.id > after)
            .order_by(Batch.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
