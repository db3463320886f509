"""Tests for the eligibility evaluator and amount validation."""

from datetime import timedelta
from decimal import Decimal

import pytest

from safetransfer.eligibility.evaluator import evaluate, to_decimal, validate_transfer_amount
from safetransfer.exceptions import InvalidAmountError
from safetransfer.models import RegulatoryLimits
from tests.conftest import AS_OF, days_ago


class TestValidateTransferAmount:
    def test_within_limits(self):
        result = validate_transfer_amount(500, 0)
        assert result.is_valid
        assert result.error is None
        assert result.amount_available == Decimal("999")

    def test_single_amount_over_cap(self):
        result = validate_transfer_amount(1000, 0)
        assert not result.is_valid
        assert "999" in result.error
        assert "legal limit" in result.error

    def test_prior_usage_plus_amount_over_cap(self):
        result = validate_transfer_amount(500, 600)
        assert not result.is_valid
        assert "rolling limit" in result.error
        assert result.amount_available == Decimal("399")

    def test_exactly_cap_with_no_usage(self):
        assert validate_transfer_amount(999, 0).is_valid

    def test_sum_exactly_at_cap(self):
        assert validate_transfer_amount(499, 500).is_valid

    def test_one_over_exhausted_window(self):
        result = validate_transfer_amount(1, 999)
        assert not result.is_valid
        assert result.amount_available == Decimal("0")

    def test_cents_over_cap_rejected(self):
        """The cap is a strict 999, not the €999,99 sometimes quoted."""
        result = validate_transfer_amount(999.99, 0)
        assert not result.is_valid

    def test_one_cent_allowed(self):
        assert validate_transfer_amount(0.01, 0).is_valid

    def test_zero_rejected(self):
        result = validate_transfer_amount(0, 0)
        assert not result.is_valid
        assert "greater than 0" in result.error

    def test_negative_rejected(self):
        result = validate_transfer_amount(-100, 0)
        assert not result.is_valid
        assert "greater than 0" in result.error

    def test_remaining_availability(self):
        assert validate_transfer_amount(499, 500).is_valid
        assert not validate_transfer_amount(500, 500).is_valid


class TestEvaluateBoundary:
    @pytest.mark.parametrize(
        "used,requested,expected",
        [
            ("0", "999", True),
            ("0", "999.00", True),
            ("0", "999.01", False),
            ("500", "499", True),
            ("500", "499.01", False),
            ("998.99", "0.01", True),
            ("998.99", "0.02", False),
            ("999", "0.01", False),
            ("0", "0.01", True),
            ("333.33", "665.67", True),
            ("333.33", "665.68", False),
        ],
    )
    def test_allowed_iff_sum_within_cap(self, used, requested, expected):
        verdict = evaluate(used, requested, days_ago(1), AS_OF)
        assert verdict.allowed is expected
        assert verdict.allowed == (Decimal(used) + Decimal(requested) <= Decimal("999"))

    def test_float_inputs_compared_exactly(self):
        """0.1 + 0.2 style drift must not leak into the comparison."""
        verdict = evaluate(998.7, 0.3, days_ago(1), AS_OF)
        assert verdict.allowed
        assert verdict.amount_used == Decimal("998.7")


class TestEvaluateVerdict:
    def test_empty_window_eligible(self):
        verdict = evaluate(0, 500, None, AS_OF)
        assert verdict.allowed
        assert verdict.reason_code == "eligible"
        assert verdict.amount_available == Decimal("999")
        assert verdict.days_remaining == 0
        assert verdict.reset_date is None
        assert verdict.oldest_transfer_date is None

    def test_blocked_reports_wait(self):
        oldest = days_ago(3)
        verdict = evaluate(600, 500, oldest, AS_OF)
        assert not verdict.allowed
        assert verdict.amount_available == Decimal("399")
        assert verdict.reset_date == oldest + timedelta(days=8)
        assert verdict.days_remaining == 5
        assert verdict.reason_code == "blocked_wait_5_days"

    def test_partial_day_rounds_up(self):
        verdict = evaluate(999, 1, days_ago(3, AS_OF) - timedelta(hours=1), AS_OF)
        assert verdict.days_remaining == 5

    def test_eligible_still_reports_next_release(self):
        verdict = evaluate(300, 100, days_ago(6), AS_OF)
        assert verdict.allowed
        assert verdict.days_remaining == 2
        assert verdict.reason_code == "eligible"

    def test_oldest_at_window_edge_has_no_wait(self):
        verdict = evaluate(999, 1, days_ago(8), AS_OF)
        assert not verdict.allowed
        assert verdict.days_remaining == 0
        assert verdict.reset_date == AS_OF
        assert verdict.reason_code == "limit_exceeded"

    def test_over_single_cap_empty_window(self):
        verdict = evaluate(0, 1000, None, AS_OF)
        assert not verdict.allowed
        assert verdict.reason_code == "limit_exceeded"

    def test_over_single_cap_never_suggests_waiting(self):
        verdict = evaluate(100, 1000, days_ago(1), AS_OF)
        assert not verdict.allowed
        assert verdict.days_remaining == 7
        assert verdict.reason_code == "limit_exceeded"

    def test_available_clamped_at_zero(self):
        verdict = evaluate(1200, 1, days_ago(1), AS_OF)
        assert verdict.amount_available == Decimal("0")

    def test_pure_same_inputs_same_output(self):
        a = evaluate("450.50", "100", days_ago(2), AS_OF)
        b = evaluate("450.50", "100", days_ago(2), AS_OF)
        assert a == b


class TestEvaluateInvalidAmounts:
    @pytest.mark.parametrize("amount", [0, -1, "-0.01", "NaN", "Infinity", "-Infinity", "abc", None])
    def test_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            evaluate(0, amount, None, AS_OF)

    def test_invalid_amount_is_value_error(self):
        with pytest.raises(ValueError):
            evaluate(0, float("nan"), None, AS_OF)

    @pytest.mark.parametrize("used", [-1, "-0.01", "NaN"])
    def test_bad_amount_used_rejected(self, used):
        with pytest.raises(InvalidAmountError):
            evaluate(used, 100, None, AS_OF)

    def test_negative_current_used_rejected(self):
        with pytest.raises(InvalidAmountError):
            validate_transfer_amount(100, -500)


class TestInjectedLimits:
    def test_diverging_caps(self):
        """Per-transfer and window caps are independent."""
        limits = RegulatoryLimits(
            max_amount_per_transfer=Decimal("500"),
            max_window_amount=Decimal("1500"),
            period_days=7,
        )
        assert not evaluate(0, 600, None, AS_OF, limits).allowed
        assert evaluate(900, 500, days_ago(1), AS_OF, limits).allowed
        assert not evaluate(1100, 500, days_ago(1), AS_OF, limits).allowed

    def test_period_drives_reset(self):
        limits = RegulatoryLimits(period_days=30)
        verdict = evaluate(999, 1, days_ago(10), AS_OF, limits)
        assert verdict.days_remaining == 20
        assert verdict.reason_code == "blocked_wait_20_days"


class TestToDecimal:
    def test_float_goes_through_str(self):
        assert to_decimal(999.99) == Decimal("999.99")

    def test_bool_rejected(self):
        with pytest.raises(InvalidAmountError):
            to_decimal(True)
