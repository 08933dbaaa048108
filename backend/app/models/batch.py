"""Batch — one tracked chemical production unit.

A Batch is created by the ledger with the next sequential id and moves
through the lifecycle stages until it is rejected or deactivated.  The
origin fields (manufacturer, composition, origin_timestamp) are written
once and guarded by the immutability listeners.

Lifecycle:  created → processed → shipped → delivered   (or rejected)
"""

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.ledger.principal import PRINCIPAL_MAX_LENGTH, Principal
from app.models.types import PrincipalType

# BIGINT range of batches.id; larger ids cannot exist and are never queried
MAX_BATCH_ID = 2**63 - 1


def is_batch_id(value: int) -> bool:
    """True if `value` fits the batch id column (ids start at 1)."""
    return 1 <= value <= MAX_BATCH_ID


class Batch(Base):
    __tablename__ = "batches"
    __table_args__ = (
        CheckConstraint("current_stage BETWEEN 0 AND 4", name="ck_batches_stage"),
        CheckConstraint("next_history_index >= 1", name="ck_batches_next_history_index"),
    )

    # Allocated by the ledger (counter + 1), never by the database
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    # ── Origin (immutable) ───────────────────────────────────
    manufacturer: Mapped[Principal] = mapped_column(
        PrincipalType(PRINCIPAL_MAX_LENGTH), nullable=False
    )
    composition: Mapped[str] = mapped_column(Text, nullable=False)
    origin_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # ── Current state ────────────────────────────────────────
    current_owner: Mapped[Principal] = mapped_column(
        PrincipalType(PRINCIPAL_MAX_LENGTH), nullable=False, index=True
    )
    current_stage: Mapped[int] = mapped_column(SmallInteger, nullable=False, index=True)
    last_update: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # False once rejected or deactivated (terminal)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # ── History cursor ───────────────────────────────────────
    # Next free sequence index in batch_history.  Owned by HistoryLedger;
    # the creation record consumes index 0, so it is >= 1 once persisted.
    next_history_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
