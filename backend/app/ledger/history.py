"""HistoryLedger — append-only per-batch event log.

Each batch carries its own cursor (`Batch.next_history_index`).  `append`
writes the record at the cursor and advances it by exactly one, so the
stored indices for a batch are always 0..k with no gaps and no rewrites.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.principal import Principal
from app.ledger.results import LedgerError, LedgerResult
from app.models.batch import Batch, is_batch_id
from app.models.batch_history import MAX_HISTORY_INDEX, BatchHistory


class HistoryLedger:

    def __init__(self, db: AsyncSession):
        self.db = db

    def append(
        self,
        batch: Batch,
        *,
        stage: int,
        owner: Principal,
        timestamp: int,
        metadata: str,
    ) -> int:
        """Stage a new record at the batch's next index and return that index.

        The record is added to the session and flushed with the enclosing
        operation; the batch row must already be locked by the caller.
        """
        index = batch.next_history_index
        self.db.add(
            BatchHistory(
                batch=batch,
                sequence=index,
                stage=int(stage),
                owner=owner,
                recorded_at=timestamp,
                event_metadata=metadata,
            )
        )
        batch.next_history_index = index + 1
        return index

    async def get(self, batch_id: int, index: int) -> LedgerResult[BatchHistory]:
        if not is_batch_id(batch_id) or not 0 <= index <= MAX_HISTORY_INDEX:
            return LedgerResult.failure(LedgerError.INVALID_BATCH)
        record = await self.db.get(BatchHistory, (batch_id, index))
        if record is None:
            return LedgerResult.failure(LedgerError.INVALID_BATCH)
        return LedgerResult.success(record)

    async def records(self, batch_id: int) -> LedgerResult[list[BatchHistory]]:
        """Full trail in index order.  Every known batch has at least record 0."""
        if not is_batch_id(batch_id):
            return LedgerResult.failure(LedgerError.INVALID_BATCH)
        result = await self.db.execute(
            select(BatchHistory)
            .where(BatchHistory.batch_id == batch_id)
            .order_by(BatchHistory.sequence.asc())
        )
        records = list(result.scalars().all())
        if not records:
            return LedgerResult.failure(LedgerError.INVALID_BATCH)
        return LedgerResult.success(records)
