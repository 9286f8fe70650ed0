"""Application-wide constants and configuration defaults.

All tuneable defaults live here so there is a single place to adjust them.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

# ── Type aliases ──────────────────────────────────────────────────────────────

RateKind = Literal["nominal-annual", "effective-annual"]
GraceKind = Literal["none", "interest-only", "full-deferral"]
InsuranceBase = Literal["period-start-balance", "average-balance"]
Currency = Literal["PEN", "USD"]

VALID_RATE_KINDS: frozenset[str] = frozenset({"nominal-annual", "effective-annual"})
VALID_GRACE_KINDS: frozenset[str] = frozenset({"none", "interest-only", "full-deferral"})
VALID_INSURANCE_BASES: frozenset[str] = frozenset({"period-start-balance", "average-balance"})
SUPPORTED_CURRENCIES: frozenset[str] = frozenset({"PEN", "USD"})

# ── Rate conversion ───────────────────────────────────────────────────────────

MONTHS_PER_YEAR: int = 12
DEFAULT_COMPOUNDING_PERIODS: int = 12   # monthly capitalisation for nominal rates

# ── IRR solver ────────────────────────────────────────────────────────────────

DEFAULT_IRR_GUESS: float = 0.01
IRR_TOLERANCE: float = 1e-8
IRR_MAX_ITERATIONS: int = 200
DERIVATIVE_EPSILON: float = 1e-12

# Newton iterates outside this open/closed range are abandoned
NEWTON_LOWER_BOUND: float = -0.9999
NEWTON_UPPER_BOUND: float = 10.0

# Direct-search bracket for the bisection fallback
BISECTION_LOW: float = -0.9
BISECTION_HIGH: float = 5.0

# ── Request defaults ──────────────────────────────────────────────────────────

DEFAULT_LENDER: str = "STANDARD"
DEFAULT_RATE_KIND: RateKind = "effective-annual"
DEFAULT_GRACE_KIND: GraceKind = "none"

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO: float = 0.0
CENT = Decimal("0.01")  # display rounding unit for money
