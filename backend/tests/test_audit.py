"""Integrity audit tests — clean ledgers pass, tampered rows are reported."""

import pytest
from sqlalchemy import text

from app.ledger.stages import Stage
from app.services.audit import check_counter, check_history, verify_ledger


async def build_ledger(ledger, admin, manufacturer, distributor, stranger):
    await ledger.create_batch(manufacturer, "one", distributor)
    await ledger.create_batch(manufacturer, "two", distributor)
    await ledger.create_batch(manufacturer, "three", distributor)
    await ledger.update_batch_status(distributor, 1, Stage.PROCESSED, "mixed")
    await ledger.transfer_batch(distributor, 1, stranger)
    await ledger.update_batch_status(distributor, 2, Stage.REJECTED, "contaminated")
    await ledger.deactivate_batch(admin, 3)


def checks(issues) -> set[str]:
    return {issue.check for issue in issues}


@pytest.mark.ledger
@pytest.mark.asyncio
class TestVerifyLedger:

    async def test_empty_ledger_is_consistent(self, ledger, db_session):
        assert await verify_ledger(db_session) == []

    async def test_ledger_built_through_operations_is_consistent(
        self, ledger, db_session, admin, manufacturer, distributor, stranger
    ):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        assert await verify_ledger(db_session) == []

    async def test_missing_state_row(self, db_session):
        issues = await check_counter(db_session)
        assert checks(issues) == {"ledger_state"}

    async def test_counter_drift(self, ledger, db_session, admin, manufacturer, distributor, stranger):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        await db_session.execute(text("UPDATE ledger_state SET batch_counter = 5"))

        issues = await check_counter(db_session)
        assert checks(issues) == {"counter"}

    async def test_history_gap(self, ledger, db_session, admin, manufacturer, distributor, stranger):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        await db_session.execute(
            text("DELETE FROM batch_history WHERE batch_id = 1 AND sequence = 1")
        )

        issues = await check_history(db_session)
        assert {"history_gap", "history_cursor"} <= checks(issues)
        assert all(issue.batch_id == 1 for issue in issues)

    async def test_missing_creation_record(self, ledger, db_session, admin, manufacturer, distributor, stranger):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        await db_session.execute(text("DELETE FROM batch_history WHERE batch_id = 3"))

        issues = await check_history(db_session)
        assert [(i.check, i.batch_id) for i in issues] == [("history_gap", 3)]

    async def test_stage_drift_and_rejected_active(
        self, ledger, db_session, admin, manufacturer, distributor, stranger
    ):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        await db_session.execute(
            text("UPDATE batches SET is_active = 1, current_stage = 4 WHERE id = 1")
        )

        found = checks(await check_history(db_session))
        assert "stage_drift" in found
        assert "rejected_active" in found

    async def test_orphan_history(self, ledger, db_session, admin, manufacturer, distributor, stranger):
        await build_ledger(ledger, admin, manufacturer, distributor, stranger)
        await db_session.execute(text(
            "INSERT INTO batch_history (batch_id, sequence, stage, owner, recorded_at, metadata) "
            "VALUES (99, 0, 0, 'SP9GHOST', 100, 'Batch created')"
        ))

        issues = await check_history(db_session)
        assert [(i.check, i.batch_id) for i in issues] == [("orphan_history", 99)]
