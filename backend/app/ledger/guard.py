"""AccessGuard — capability checks and the admin surface.

Every authorization decision in the ledger goes through one of the
predicates below; nothing else compares principals.

    is_admin              → caller is the ledger admin
    can_mutate            → circuit breaker is not tripped
    can_authorize_update  → caller is the batch owner or the oracle
    can_transfer          → caller is the batch owner (oracle excluded)
"""

from __future__ import annotations

import logging

from app.ledger.principal import Principal
from app.ledger.results import LedgerError, LedgerResult, rejected
from app.models.ledger_state import LedgerState

logger = logging.getLogger("chemtrace.ledger")


class AccessGuard:
    """Reads and updates the admin / oracle / paused triple of LedgerState."""

    def __init__(self, state: LedgerState):
        self._state = state

    # ── Read-only views ──────────────────────────────────────

    @property
    def admin(self) -> Principal:
        return self._state.admin

    @property
    def oracle(self) -> Principal | None:
        return self._state.oracle

    @property
    def paused(self) -> bool:
        return self._state.paused

    # ── Capability predicates ────────────────────────────────

    def is_admin(self, caller: Principal | None) -> bool:
        return caller is not None and caller == self._state.admin

    def can_mutate(self) -> bool:
        return not self._state.paused

    def can_authorize_update(self, caller: Principal | None, batch_owner: Principal) -> bool:
        if caller is None:
            return False
        oracle = self._state.oracle
        return caller == batch_owner or (oracle is not None and caller == oracle)

    def can_transfer(self, caller: Principal | None, batch_owner: Principal) -> bool:
        return caller is not None and caller == batch_owner

    # ── Admin surface ────────────────────────────────────────
    # Not gated by the pause flag: an admin must be able to recover.

    def transfer_admin(
        self, caller: Principal | None, new_admin: Principal | None
    ) -> LedgerResult[bool]:
        if not self.is_admin(caller):
            return rejected("transfer_admin", LedgerError.NOT_AUTHORIZED, caller)
        if new_admin is None:
            return rejected("transfer_admin", LedgerError.ZERO_ADDRESS, caller)

        previous = self._state.admin
        self._state.admin = new_admin
        logger.info(
            f"Admin transferred from {previous} to {new_admin}",
            extra={"operation": "transfer_admin", "caller": str(caller)},
        )
        return LedgerResult.success(True)

    def set_oracle(
        self, caller: Principal | None, new_oracle: Principal | None
    ) -> LedgerResult[bool]:
        if not self.is_admin(caller):
            return rejected("set_oracle", LedgerError.NOT_AUTHORIZED, caller)
        if new_oracle is None:
            return rejected("set_oracle", LedgerError.ZERO_ADDRESS, caller)

        self._state.oracle = new_oracle
        logger.info(
            f"Oracle set to {new_oracle}",
            extra={"operation": "set_oracle", "caller": str(caller)},
        )
        return LedgerResult.success(True)

    def set_paused(self, caller: Principal | None, flag: bool) -> LedgerResult[bool]:
        if not self.is_admin(caller):
            return rejected("set_paused", LedgerError.NOT_AUTHORIZED, caller)

        self._state.paused = bool(flag)
        logger.info(
            f"Ledger {'paused' if flag else 'resumed'}",
            extra={"operation": "set_paused", "caller": str(caller)},
        )
        return LedgerResult.success(bool(flag))

