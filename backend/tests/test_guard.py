"""AccessGuard capability checks and admin surface (no database)."""

import pytest

from app.ledger.guard import AccessGuard
from app.ledger.principal import Principal
from app.ledger.results import LedgerError
from app.models.ledger_state import LEDGER_STATE_ID, LedgerState

ADMIN = Principal("SP1ADMIN")
ORACLE = Principal("SP2ORACLE")
OWNER = Principal("SP3OWNER")
OTHER = Principal("SP5OTHER")


def make_guard(oracle: Principal | None = None, paused: bool = False) -> AccessGuard:
    state = LedgerState(
        id=LEDGER_STATE_ID, admin=ADMIN, oracle=oracle, paused=paused, batch_counter=0
    )
    return AccessGuard(state)


@pytest.mark.unit
class TestCapabilities:

    def test_is_admin(self):
        guard = make_guard()
        assert guard.is_admin(ADMIN)
        assert not guard.is_admin(OTHER)
        assert not guard.is_admin(None)

    def test_can_mutate_follows_pause_flag(self):
        assert make_guard().can_mutate()
        assert not make_guard(paused=True).can_mutate()

    def test_owner_or_oracle_may_update(self):
        guard = make_guard(oracle=ORACLE)
        assert guard.can_authorize_update(OWNER, OWNER)
        assert guard.can_authorize_update(ORACLE, OWNER)
        assert not guard.can_authorize_update(OTHER, OWNER)
        assert not guard.can_authorize_update(ADMIN, OWNER)

    def test_unset_oracle_authorizes_nobody(self):
        guard = make_guard(oracle=None)
        assert not guard.can_authorize_update(OTHER, OWNER)
        assert not guard.can_authorize_update(None, OWNER)

    def test_only_owner_may_transfer(self):
        guard = make_guard(oracle=ORACLE)
        assert guard.can_transfer(OWNER, OWNER)
        assert not guard.can_transfer(ORACLE, OWNER)
        assert not guard.can_transfer(ADMIN, OWNER)


@pytest.mark.unit
class TestAdminSurface:

    def test_transfer_admin(self):
        guard = make_guard()
        result = guard.transfer_admin(ADMIN, OTHER)
        assert result.is_ok and result.value is True
        assert guard.admin == OTHER
        # The previous admin has lost its powers
        assert guard.transfer_admin(ADMIN, ADMIN).error == LedgerError.NOT_AUTHORIZED

    def test_transfer_admin_checks_caller_before_target(self):
        guard = make_guard()
        assert guard.transfer_admin(OTHER, None).error == LedgerError.NOT_AUTHORIZED
        assert guard.transfer_admin(ADMIN, None).error == LedgerError.ZERO_ADDRESS
        assert guard.admin == ADMIN

    def test_set_oracle(self):
        guard = make_guard()
        assert guard.set_oracle(OTHER, ORACLE).error == LedgerError.NOT_AUTHORIZED
        assert guard.set_oracle(ADMIN, None).error == LedgerError.ZERO_ADDRESS
        assert guard.oracle is None

        assert guard.set_oracle(ADMIN, ORACLE).value is True
        assert guard.oracle == ORACLE

    def test_set_paused_returns_new_flag(self):
        guard = make_guard()
        assert guard.set_paused(OTHER, True).error == LedgerError.NOT_AUTHORIZED
        assert not guard.paused

        paused = guard.set_paused(ADMIN, True)
        assert paused.is_ok and paused.value is True
        assert guard.paused

        resumed = guard.set_paused(ADMIN, False)
        assert resumed.is_ok and resumed.value is False
        assert not guard.paused

    def test_admin_surface_works_while_paused(self):
        guard = make_guard(paused=True)
        assert guard.set_oracle(ADMIN, ORACLE).is_ok
        assert guard.transfer_admin(ADMIN, OTHER).is_ok
