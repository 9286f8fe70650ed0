"""Unit tests for insurance.py — premium per balance base."""
import pytest

from tcea_simulator.insurance import (
    NO_INSURANCE,
    FixedInsurance,
    PercentageInsurance,
    premium,
    validate_policy,
)


class TestFixedPremium:
    def test_constant_amount(self):
        policy = FixedInsurance(amount=25.0)
        assert premium(policy, 100000.0, 0.01) == 25.0
        assert premium(policy, 10.0, 0.5) == 25.0

    def test_no_insurance(self):
        assert premium(NO_INSURANCE, 100000.0, 0.01) == 0.0


class TestPercentagePremium:
    def test_period_start_balance(self):
        policy = PercentageInsurance(monthly_rate=0.0005, base="period-start-balance")
        assert premium(policy, 100000.0, 0.01) == pytest.approx(50.0)

    def test_start_balance_ignores_ending_balance(self):
        policy = PercentageInsurance(monthly_rate=0.0005)
        assert premium(policy, 100000.0, 0.01, ending_balance=0.0) == pytest.approx(50.0)

    def test_average_balance_with_known_ending(self):
        policy = PercentageInsurance(monthly_rate=0.001, base="average-balance")
        # (100000 + 90000) / 2 * 0.001
        assert premium(policy, 100000.0, 0.01, ending_balance=90000.0) == pytest.approx(95.0)

    def test_average_balance_estimated_ending(self):
        policy = PercentageInsurance(monthly_rate=0.001, base="average-balance")
        # estimated ending = 100000 - 100000 * 0.01 = 99000 → average 99500
        assert premium(policy, 100000.0, 0.01) == pytest.approx(99.5)

    def test_average_balance_estimate_floored_at_zero(self):
        policy = PercentageInsurance(monthly_rate=0.001, base="average-balance")
        assert premium(policy, 100000.0, 1.5) == pytest.approx(50.0)


class TestValidatePolicy:
    def test_valid_policies(self):
        validate_policy(FixedInsurance(amount=0.0))
        validate_policy(PercentageInsurance(monthly_rate=0.0003, base="average-balance"))

    def test_negative_amount(self):
        with pytest.raises(ValueError, match="amount"):
            validate_policy(FixedInsurance(amount=-1.0))

    def test_negative_rate(self):
        with pytest.raises(ValueError, match="monthly_rate"):
            validate_policy(PercentageInsurance(monthly_rate=-0.001))

    def test_unknown_base(self):
        with pytest.raises(ValueError, match="Unknown insurance base"):
            validate_policy(PercentageInsurance(monthly_rate=0.001, base="closing"))  # type: ignore[arg-type]
