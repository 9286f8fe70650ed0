"""Net present value and internal rate of return on a signed cash-flow list.

Index 0 of a cash-flow sequence is undiscounted; index t is discounted by
``(1 + rate)^t``. The IRR is solved by Newton-Raphson first and falls back
to bisection over a fixed bracket when Newton stalls or leaves the domain.
A sequence without a sign change has no IRR and yields ``None``.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .config import (
    BISECTION_HIGH,
    BISECTION_LOW,
    DEFAULT_IRR_GUESS,
    DERIVATIVE_EPSILON,
    IRR_MAX_ITERATIONS,
    IRR_TOLERANCE,
    NEWTON_LOWER_BOUND,
    NEWTON_UPPER_BOUND,
)

logger = logging.getLogger(__name__)


def _discount(amount: float, rate: float, periods: int) -> float:
    # Long horizons near the bracket ends under/overflow the discount factor.
    if amount == 0:
        return 0.0
    try:
        return amount / (1 + rate) ** periods
    except ZeroDivisionError:
        return math.copysign(math.inf, amount)
    except OverflowError:
        return 0.0


def present_value(rate: float, cashflows: Sequence[float]) -> float:
    """Return sum(cf[t] / (1 + rate)^t) for t = 0..n."""
    return sum(_discount(cf, rate, t) for t, cf in enumerate(cashflows))


def present_value_derivative(rate: float, cashflows: Sequence[float]) -> float:
    """Analytic d/d(rate) of :func:`present_value`."""
    return sum(_discount(-t * cf, rate, t + 1) for t, cf in enumerate(cashflows))


def newton_rate(
    cashflows: Sequence[float],
    guess: float = DEFAULT_IRR_GUESS,
    *,
    tolerance: float = IRR_TOLERANCE,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> Optional[float]:
    """Newton-Raphson search for a root of the NPV function.

    Returns None when the derivative vanishes, the iterate leaves
    (NEWTON_LOWER_BOUND, NEWTON_UPPER_BOUND], becomes non-finite, or the
    iteration budget runs out before |NPV| < tolerance.
    """
    r = guess
    for iteration in range(max_iterations):
        f = present_value(r, cashflows)
        df = present_value_derivative(r, cashflows)
        if not (math.isfinite(f) and math.isfinite(df)):
            logger.debug("Newton: non-finite NPV at r=%r (iteration %d)", r, iteration)
            return None
        if abs(f) < tolerance:
            return r
        if abs(df) < DERIVATIVE_EPSILON:
            logger.debug("Newton: vanishing derivative at r=%r (iteration %d)", r, iteration)
            return None
        r = r - f / df
        if not math.isfinite(r) or r <= NEWTON_LOWER_BOUND or r > NEWTON_UPPER_BOUND:
            logger.debug("Newton: iterate left the domain, r=%r (iteration %d)", r, iteration)
            return None
    logger.debug("Newton: no convergence after %d iterations", max_iterations)
    return None


def bisection_rate(
    cashflows: Sequence[float],
    low: float = BISECTION_LOW,
    high: float = BISECTION_HIGH,
    *,
    tolerance: float = IRR_TOLERANCE,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> Optional[float]:
    """Bisection search for a root of the NPV function on [low, high].

    Returns None when the endpoints do not bracket a root. If the iteration
    budget runs out first, the midpoint of the final bracket is returned.
    """
    f_low = present_value(low, cashflows)
    f_high = present_value(high, cashflows)
    if math.isnan(f_low) or math.isnan(f_high):
        logger.debug("Bisection: NPV undefined at a bracket end")
        return None
    if f_low == 0:
        return low
    if f_high == 0:
        return high
    if f_low * f_high > 0:
        logger.debug("Bisection: no sign change on [%r, %r]", low, high)
        return None

    for _ in range(max_iterations):
        mid = (low + high) / 2
        f_mid = present_value(mid, cashflows)
        if abs(f_mid) < tolerance:
            return mid
        if f_low * f_mid <= 0:
            high = mid
        else:
            low, f_low = mid, f_mid
    return (low + high) / 2


def internal_rate(
    cashflows: Sequence[float],
    initial_guess: float = DEFAULT_IRR_GUESS,
) -> Optional[float]:
    """Return the periodic IRR of *cashflows*, or None when none exists."""
    if not (any(cf > 0 for cf in cashflows) and any(cf < 0 for cf in cashflows)):
        logger.debug("IRR unavailable: cash flows have no sign change")
        return None

    rate = newton_rate(cashflows, initial_guess)
    if rate is not None:
        return rate

    logger.debug("Falling back to bisection for %d cash flows", len(cashflows))
    rate = bisection_rate(cashflows)
    if rate is None:
        logger.debug("IRR unavailable: cash flows do not change sign on the search bracket")
    return rate
