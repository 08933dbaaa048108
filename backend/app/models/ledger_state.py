"""LedgerState — the four ledger-wide scalars in a single row.

    admin          → principal allowed to manage the ledger
    oracle         → principal allowed to push stage updates (may be unset)
    paused         → circuit breaker for batch mutations
    batch_counter  → highest batch id allocated so far

Exactly one row (id = 1) exists once the ledger has been initialised.
It is created by `app.services.bootstrap.initialise_ledger` and never
re-created.
"""

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.ledger.principal import PRINCIPAL_MAX_LENGTH, Principal
from app.models.types import PrincipalType

LEDGER_STATE_ID = 1


class LedgerState(Base):
    __tablename__ = "ledger_state"
    __table_args__ = (
        CheckConstraint("id = 1", name="ck_ledger_state_singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=LEDGER_STATE_ID)

    # ── Privileged identities ────────────────────────────────
    admin: Mapped[Principal] = mapped_column(
        PrincipalType(PRINCIPAL_MAX_LENGTH), nullable=False
    )
    oracle: Mapped[Principal | None] = mapped_column(
        PrincipalType(PRINCIPAL_MAX_LENGTH)
    )

    # ── Circuit breaker ──────────────────────────────────────
    paused: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ── Identifier allocation ────────────────────────────────
    batch_counter: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
