"""Unit tests for stages, principals, results and the clock."""

import pytest

from app.config import settings
from app.ledger.principal import PRINCIPAL_MAX_LENGTH, Principal, parse_principal
from app.ledger.results import LedgerError, LedgerResult
from app.ledger.stages import Stage, is_valid_stage
from app.utils.clock import FixedClock


@pytest.mark.unit
class TestStageValidation:

    @pytest.mark.parametrize("value", [0, 1, 2, 3, 4])
    def test_enumerated_stages_are_valid(self, value):
        assert is_valid_stage(value)

    @pytest.mark.parametrize("value", [-1, 5, 99, 2**64])
    def test_out_of_range_is_invalid(self, value):
        assert not is_valid_stage(value)

    @pytest.mark.parametrize("value", [True, False, "1", 1.0, None])
    def test_non_integers_are_invalid(self, value):
        assert not is_valid_stage(value)

    def test_stage_values(self):
        assert [int(s) for s in Stage] == [0, 1, 2, 3, 4]
        assert Stage.REJECTED.name == "REJECTED"


@pytest.mark.unit
class TestPrincipal:

    def test_equality_is_by_value(self):
        assert Principal("SP1") == Principal("SP1")
        assert Principal("SP1") != Principal("SP2")
        assert str(Principal("SP1")) == "SP1"

    def test_empty_value_rejected(self):
        with pytest.raises(ValueError):
            Principal("  ")

    def test_value_longer_than_column_rejected(self):
        assert Principal("S" * PRINCIPAL_MAX_LENGTH).value == "S" * PRINCIPAL_MAX_LENGTH
        with pytest.raises(ValueError):
            Principal("S" * (PRINCIPAL_MAX_LENGTH + 1))
        with pytest.raises(ValueError):
            parse_principal("S" * 200)

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_absent_identity_parses_to_none(self, raw):
        assert parse_principal(raw) is None

    def test_burn_address_parses_to_none(self):
        assert parse_principal(settings.null_principal) is None

    def test_custom_null_value(self):
        assert parse_principal("NOBODY", null_value="NOBODY") is None
        assert parse_principal("SP1", null_value="NOBODY") == Principal("SP1")

    def test_value_is_stripped(self):
        assert parse_principal("  SP1 ") == Principal("SP1")


@pytest.mark.unit
class TestLedgerResult:

    def test_error_codes_are_stable(self):
        assert {e.name: int(e) for e in LedgerError} == {
            "NOT_AUTHORIZED": 100,
            "INVALID_BATCH": 101,
            "INVALID_STAGE": 102,
            "PAUSED": 103,
            "ZERO_ADDRESS": 104,
            "ALREADY_EXISTS": 105,
        }

    def test_only_paused_is_retryable(self):
        assert [e for e in LedgerError if e.retryable] == [LedgerError.PAUSED]

    def test_success_may_hold_falsy_value(self):
        result = LedgerResult.success(False)
        assert result.is_ok
        assert result.value is False

    def test_failure_carries_no_value(self):
        result = LedgerResult.failure(LedgerError.PAUSED)
        assert result.is_error
        assert result.value is None
        with pytest.raises(ValueError):
            LedgerResult(value=1, error=LedgerError.PAUSED)


@pytest.mark.unit
class TestFixedClock:

    def test_advance(self):
        clock = FixedClock(100)
        assert clock.now() == 100
        clock.advance()
        clock.advance(9)
        assert clock.now() == 110

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            FixedClock(-1)


@pytest.mark.unit
class TestSettings:

    def test_default_origins_are_the_web_client_only(self):
        assert settings.allowed_origins.split(",") == ["http://localhost:3000"]
