"""Unit tests for cashflows.py — NPV, Newton, bisection, IRR orchestration."""
import pytest

from tcea_simulator.cashflows import (
    bisection_rate,
    internal_rate,
    newton_rate,
    present_value,
    present_value_derivative,
)

TWO_PERIOD_LOAN = [100.0, -51.25, -51.25]


def _annuity_flows(principal: float, payment: float, months: int) -> list[float]:
    return [principal] + [-payment] * months


class TestPresentValue:
    def test_zero_rate_is_plain_sum(self):
        assert present_value(0.0, [100.0, -50.0, -50.0]) == 0.0

    def test_discounting(self):
        assert present_value(0.1, [0.0, 110.0]) == pytest.approx(100.0)

    def test_first_flow_undiscounted(self):
        assert present_value(0.5, [42.0]) == 42.0

    def test_derivative_matches_finite_difference(self):
        flows = [1000.0, -300.0, -400.0, -500.0]
        h = 1e-6
        numeric = (present_value(0.05 + h, flows) - present_value(0.05 - h, flows)) / (2 * h)
        assert present_value_derivative(0.05, flows) == pytest.approx(numeric, rel=1e-6)

    def test_long_horizon_at_bracket_low_end(self):
        # 0.1 ** 400 underflows; the NPV is dominated by the late outflows
        flows = _annuity_flows(100000.0, 1000.0, 400)
        assert present_value(-0.9, flows) == float("-inf")


class TestNewton:
    def test_two_period_loan(self):
        r = newton_rate(TWO_PERIOD_LOAN)
        assert r is not None
        assert 51.25 / (1 + r) + 51.25 / (1 + r) ** 2 == pytest.approx(100.0, abs=1e-6)

    def test_no_root_leaves_domain(self):
        assert newton_rate([100.0, 50.0, 50.0]) is None

    def test_flat_function(self):
        # a single flow has a zero derivative everywhere
        assert newton_rate([100.0]) is None

    def test_far_guess_leaves_domain(self):
        assert newton_rate(TWO_PERIOD_LOAN, guess=9.9) is None


class TestBisection:
    def test_two_period_loan(self):
        r = bisection_rate(TWO_PERIOD_LOAN)
        assert r is not None
        assert present_value(r, TWO_PERIOD_LOAN) == pytest.approx(0.0, abs=1e-6)

    def test_no_sign_change(self):
        assert bisection_rate([100.0, 50.0, 50.0]) is None

    def test_root_at_bracket_end(self):
        # 1 - 1.1 / (1 + r) = 0 at r = 0.1
        assert bisection_rate([1.0, -1.1], low=0.1, high=0.5) == 0.1

    def test_long_horizon(self):
        flows = _annuity_flows(100000.0, 1000.0, 360)
        r = bisection_rate(flows)
        assert r is not None
        assert r == pytest.approx(internal_rate(flows), abs=1e-9)


class TestInternalRate:
    def test_two_period_loan(self):
        r = internal_rate(TWO_PERIOD_LOAN)
        assert r is not None
        assert 51.25 / (1 + r) + 51.25 / (1 + r) ** 2 == pytest.approx(100.0, abs=1e-6)

    def test_recovers_known_monthly_rate(self):
        payment = 100000.0 * 0.01 * 1.01 ** 12 / (1.01 ** 12 - 1)  # ≈ 8884.88
        flows = _annuity_flows(100000.0, payment, 12)
        assert internal_rate(flows) == pytest.approx(0.01, abs=1e-9)

    def test_bisection_fallback_when_newton_fails(self):
        assert newton_rate(TWO_PERIOD_LOAN, guess=9.9) is None
        assert internal_rate(TWO_PERIOD_LOAN, initial_guess=9.9) == pytest.approx(
            internal_rate(TWO_PERIOD_LOAN), abs=1e-9
        )

    @pytest.mark.parametrize("flows", [
        [100.0, 50.0, 50.0],
        [-100.0, -50.0, -50.0],
        [0.0, 0.0],
        [100.0],
    ])
    def test_no_solution(self, flows):
        assert internal_rate(flows) is None

    def test_empty(self):
        assert internal_rate([]) is None
