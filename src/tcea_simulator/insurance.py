"""Life (desgravamen) insurance premium per period."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .config import InsuranceBase, VALID_INSURANCE_BASES, ZERO


@dataclass(frozen=True)
class FixedInsurance:
    """Constant monthly premium, independent of the balance."""
    amount: float


@dataclass(frozen=True)
class PercentageInsurance:
    """Premium charged as a monthly rate over a balance base."""
    monthly_rate: float
    base: InsuranceBase = "period-start-balance"


InsurancePolicy = Union[FixedInsurance, PercentageInsurance]

NO_INSURANCE = FixedInsurance(amount=ZERO)


def validate_policy(policy: InsurancePolicy) -> None:
    """Raise ValueError if the policy carries negative or unknown values."""
    if isinstance(policy, FixedInsurance):
        if policy.amount < ZERO:
            raise ValueError("insurance amount must be >= 0")
    elif isinstance(policy, PercentageInsurance):
        if policy.monthly_rate < ZERO:
            raise ValueError("insurance monthly_rate must be >= 0")
        if policy.base not in VALID_INSURANCE_BASES:
            raise ValueError(
                f"Unknown insurance base '{policy.base}'. "
                f"Valid values: {', '.join(sorted(VALID_INSURANCE_BASES))}"
            )
    else:
        raise ValueError(f"Unsupported insurance policy: {policy!r}")


def premium(
    policy: InsurancePolicy,
    period_start_balance: float,
    periodic_rate: float,
    ending_balance: Optional[float] = None,
) -> float:
    """Return the insurance premium for one period.

    For the ``average-balance`` base the premium is charged on the mean of
    the opening and ending balances. Callers that already know the period's
    ending balance pass it as *ending_balance*; otherwise it is estimated as
    the opening balance less one period of interest, floored at zero.
    """
    if isinstance(policy, FixedInsurance):
        return policy.amount

    if policy.base == "average-balance":
        if ending_balance is None:
            ending_balance = max(ZERO, period_start_balance - period_start_balance * periodic_rate)
        base = (period_start_balance + ending_balance) / 2
    else:
        base = period_start_balance
    return base * policy.monthly_rate
