"""Periodic rate conversions.

Every annual rate entering the engine is turned into an effective monthly
rate here, and the monthly IRR leaves the engine through ``annualize``.
Rates are proportions (0.12 for 12 %), never percentages.
"""
from __future__ import annotations

from .config import DEFAULT_COMPOUNDING_PERIODS, MONTHS_PER_YEAR, RateKind


def effective_annual_rate(
    kind: RateKind,
    value: float,
    compounding_periods_per_year: int = DEFAULT_COMPOUNDING_PERIODS,
) -> float:
    """Return the effective annual rate equivalent to *value*.

    A nominal annual rate capitalised *m* times a year becomes
    ``(1 + value/m)^m - 1``; an effective annual rate is returned as-is.
    """
    if kind == "effective-annual":
        return value
    if kind == "nominal-annual":
        m = compounding_periods_per_year
        if m < 1:
            raise ValueError("compounding_periods_per_year must be >= 1")
        return (1 + value / m) ** m - 1
    raise ValueError(f"Unknown rate kind '{kind}'")


def monthly_rate(
    kind: RateKind,
    value: float,
    compounding_periods_per_year: int = DEFAULT_COMPOUNDING_PERIODS,
) -> float:
    """Convert a TEA or TNA into the effective monthly rate."""
    annual = effective_annual_rate(kind, value, compounding_periods_per_year)
    return (1 + annual) ** (1 / MONTHS_PER_YEAR) - 1


def annualize(rate: float) -> float:
    """Effective annual rate equivalent to the effective monthly *rate*."""
    return (1 + rate) ** MONTHS_PER_YEAR - 1
