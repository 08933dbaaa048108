"""Ledger integrity audit — verifies persisted state against the ledger rules.

Each check_* function runs one read-only query and returns a list of
IntegrityIssue objects.  `verify_ledger` runs them all and returns the
combined list; an empty list means the stored ledger is consistent.

Checks:
    - batch ids are exactly 1..batch_counter
    - every batch's history indices are exactly 0..k, with the batch's
      next_history_index == k + 1
    - index 0 is the creation record (CREATED, "Batch created")
    - stored stages are valid; the latest record's stage matches the batch
    - a REJECTED batch is inactive
    - no history rows exist for unknown batches

Queries select plain columns rather than ORM entities so the audit reads
what is in the database, not what the session has cached.
"""

import logging
from dataclasses import dataclass
from itertools import groupby

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ledger.registry import CREATED_METADATA
from app.ledger.stages import Stage, is_valid_stage
from app.models.batch import Batch
from app.models.batch_history import BatchHistory
from app.models.ledger_state import LEDGER_STATE_ID, LedgerState

logger = logging.getLogger("chemtrace.audit")


@dataclass(frozen=True)
class IntegrityIssue:
    # counter | history_gap | history_cursor | creation_record |
    # invalid_stage | stage_drift | rejected_active | orphan_history | ledger_state
    check: str
    batch_id: int | None
    message: str


# ─────────────────────────────────────────────────────────────
# CHECK 1:  batch ids  ≠  1..batch_counter
# ─────────────────────────────────────────────────────────────

async def check_counter(db: AsyncSession) -> list[IntegrityIssue]:
    counter = await db.scalar(
        select(LedgerState.batch_counter).where(LedgerState.id == LEDGER_STATE_ID)
    )
    if counter is None:
        return [IntegrityIssue("ledger_state", None, "ledger_state row is missing")]

    ids = list((await db.execute(select(Batch.id).order_by(Batch.id.asc()))).scalars())
    expected = list(range(1, counter + 1))
    if ids == expected:
        return []

    missing = sorted(set(expected) - set(ids))
    unexpected = sorted(set(ids) - set(expected))
    return [
        IntegrityIssue(
            "counter",
            None,
            f"batch_counter={counter} but batch ids missing={missing[:10]} "
            f"unexpected={unexpected[:10]}",
        )
    ]


# ─────────────────────────────────────────────────────────────
# CHECK 2:  per-batch history trail
# ─────────────────────────────────────────────────────────────

async def check_history(db: AsyncSession) -> list[IntegrityIssue]:
    batches = {
        row.id: row
        for row in await db.execute(
            select(
                Batch.id,
                Batch.current_stage,
                Batch.is_active,
                Batch.next_history_index,
            )
        )
    }
    history_rows = await db.execute(
        select(
            BatchHistory.batch_id,
            BatchHistory.sequence,
            BatchHistory.stage,
            BatchHistory.event_metadata.label("event_metadata"),
        ).order_by(BatchHistory.batch_id.asc(), BatchHistory.sequence.asc())
    )

    issues: list[IntegrityIssue] = []
    seen: set[int] = set()

    for batch_id, group in groupby(history_rows, key=lambda r: r.batch_id):
        records = list(group)
        seen.add(batch_id)
        batch = batches.get(batch_id)
        if batch is None:
            issues.append(IntegrityIssue(
                "orphan_history", batch_id,
                f"{len(records)} history record(s) for unknown batch",
            ))
            continue

        sequences = [r.sequence for r in records]
        if sequences != list(range(len(records))):
            issues.append(IntegrityIssue(
                "history_gap", batch_id,
                f"history indices {sequences} are not contiguous from 0",
            ))
        if batch.next_history_index != len(records):
            issues.append(IntegrityIssue(
                "history_cursor", batch_id,
                f"next_history_index={batch.next_history_index} "
                f"but {len(records)} record(s) stored",
            ))

        first = records[0]
        if first.sequence != 0 or first.stage != Stage.CREATED or first.event_metadata != CREATED_METADATA:
            issues.append(IntegrityIssue(
                "creation_record", batch_id,
                "index 0 is not the creation record",
            ))

        bad = [r.sequence for r in records if not is_valid_stage(r.stage)]
        if bad:
            issues.append(IntegrityIssue(
                "invalid_stage", batch_id,
                f"history indices {bad} hold an unknown stage",
            ))
        if records[-1].stage != batch.current_stage:
            issues.append(IntegrityIssue(
                "stage_drift", batch_id,
                f"latest history stage {records[-1].stage} "
                f"!= current_stage {batch.current_stage}",
            ))

    for batch_id, batch in batches.items():
        if batch_id not in seen:
            issues.append(IntegrityIssue(
                "history_gap", batch_id, "batch has no creation record",
            ))
        if batch.current_stage == Stage.REJECTED and batch.is_active:
            issues.append(IntegrityIssue(
                "rejected_active", batch_id, "REJECTED batch is still active",
            ))

    return issues


# ─────────────────────────────────────────────────────────────
# Orchestrator
# ─────────────────────────────────────────────────────────────

async def verify_ledger(db: AsyncSession) -> list[IntegrityIssue]:
    """Run every check and return all issues found (empty → consistent)."""
    issues = await check_counter(db)
    issues += await check_history(db)

    for issue in issues:
        logger.warning(
            f"Ledger integrity issue [{issue.check}]: {issue.message}",
            extra={"check": issue.check, "batch_id": issue.batch_id},
        )
    logger.info(f"Ledger verification finished with {len(issues)} issue(s)")
    return issues
