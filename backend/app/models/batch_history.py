"""BatchHistory — append-only event log for batch stage and owner changes.

Keyed by (batch_id, sequence).  Sequence 0 is the creation record; every
accepted status update or ownership transfer appends the next index.  The
composite primary key means an index can never be written twice, and the
immutability listeners reject any UPDATE or DELETE through the ORM.
"""

from sqlalchemy import BigInteger, ForeignKey, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.ledger.principal import PRINCIPAL_MAX_LENGTH, Principal
from app.models.types import PrincipalType

# INTEGER range of batch_history.sequence
MAX_HISTORY_INDEX = 2**31 - 1


class BatchHistory(Base):
    __tablename__ = "batch_history"

    batch_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("batches.id"), primary_key=True
    )
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # ── Snapshot at this event ───────────────────────────────
    stage: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    owner: Mapped[Principal] = mapped_column(
        PrincipalType(PRINCIPAL_MAX_LENGTH), nullable=False
    )
    recorded_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)

    # Free-form annotation ("Batch created", "Ownership transferred", ...)
    event_metadata: Mapped[str] = mapped_column("metadata", Text, nullable=False, default="")

    # ── Relationships ────────────────────────────────────────
    # Only assigned when appending (orders the INSERT after the batch's);
    # never navigated, so accidental lazy loads raise.
    batch = relationship("Batch", lazy="raise")
