"""Total effective annual cost rate (TCEA) from the client's monthly flow."""
from __future__ import annotations

from typing import Optional, Sequence

from .cashflows import internal_rate
from .config import DEFAULT_IRR_GUESS
from .rates import annualize


def annualized_cost(monthly_irr: Optional[float]) -> Optional[float]:
    """Annualise a monthly IRR, propagating an unavailable (None) rate."""
    if monthly_irr is None:
        return None
    return annualize(monthly_irr)


def tcea(cashflows: Sequence[float], guess: float = DEFAULT_IRR_GUESS) -> Optional[float]:
    """Annualised IRR of the monthly client flow, or None if no IRR exists.

    ``None`` is a valid outcome (the flow has no sign change) and must be
    shown as "unavailable" rather than as a zero rate.
    """
    return annualized_cost(internal_rate(cashflows, guess))
