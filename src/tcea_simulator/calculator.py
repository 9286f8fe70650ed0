"""Amortization schedule and total-cost simulation for French-installment loans.

All amounts are floats kept at full precision; rounding is a presentation
concern. A simulation walks the loan month by month through two phases:

* grace (months 1..grace_months, only when grace_kind != "none"), either
  interest-only or full deferral with interest capitalised onto the balance;
* amortizing (remaining months), paying a constant French installment
  computed once against the balance carried out of the grace phase.

Each period's insurance premium is computed after its interest and
amortization, and the transaction tax after the insurance, so a single pass
is enough even for the average-balance insurance base.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from .cashflows import internal_rate, present_value
from .config import (
    DEFAULT_COMPOUNDING_PERIODS,
    GraceKind,
    RateKind,
    VALID_GRACE_KINDS,
    VALID_RATE_KINDS,
    ZERO,
)
from .insurance import NO_INSURANCE, InsurancePolicy, premium, validate_policy
from .rates import monthly_rate
from .tcea import annualized_cost

logger = logging.getLogger(__name__)


class InvalidTermsError(ValueError):
    """Raised when loan parameters describe an impossible or unsupported loan."""


class Phase(enum.Enum):
    INTEREST_ONLY_GRACE = "interest-only"
    FULL_DEFERRAL_GRACE = "full-deferral"
    AMORTIZING = "amortizing"

    @property
    def is_grace(self) -> bool:
        return self is not Phase.AMORTIZING


@dataclass(frozen=True)
class LoanTerms:
    principal: float
    term_months: int
    rate_kind: RateKind
    rate_value: float
    compounding_periods_per_year: int = DEFAULT_COMPOUNDING_PERIODS
    grace_months: int = 0
    grace_kind: GraceKind = "none"
    upfront_costs: float = ZERO
    finance_upfront_costs: bool = False
    tax_rate: float = ZERO
    insurance: InsurancePolicy = NO_INSURANCE
    collect_insurance_during_full_deferral: bool = False

    def __post_init__(self) -> None:
        problems = _term_problems(self)
        if problems:
            raise InvalidTermsError("; ".join(problems))

    @property
    def monthly_rate(self) -> float:
        return monthly_rate(self.rate_kind, self.rate_value, self.compounding_periods_per_year)

    @property
    def financed_principal(self) -> float:
        """Opening balance: principal plus upfront costs when those are financed."""
        if self.finance_upfront_costs:
            return self.principal + self.upfront_costs
        return self.principal

    @property
    def net_disbursement(self) -> float:
        """Amount the borrower actually receives at t0."""
        return self.financed_principal - self.upfront_costs

    def phase_for(self, month: int) -> Phase:
        if month <= self.grace_months and self.grace_kind == "interest-only":
            return Phase.INTEREST_ONLY_GRACE
        if month <= self.grace_months and self.grace_kind == "full-deferral":
            return Phase.FULL_DEFERRAL_GRACE
        return Phase.AMORTIZING


def _term_problems(terms: LoanTerms) -> list[str]:
    problems: list[str] = []
    if not terms.principal > ZERO:
        problems.append("principal must be > 0")
    if terms.term_months <= 0:
        problems.append("term_months must be > 0")
    if terms.rate_kind not in VALID_RATE_KINDS:
        problems.append(
            f"unknown rate_kind '{terms.rate_kind}' "
            f"(valid: {', '.join(sorted(VALID_RATE_KINDS))})"
        )
    if not terms.rate_value > ZERO:
        problems.append("rate_value must be > 0")
    if terms.compounding_periods_per_year < 1:
        problems.append("compounding_periods_per_year must be >= 1")
    if terms.grace_kind not in VALID_GRACE_KINDS:
        problems.append(
            f"unknown grace_kind '{terms.grace_kind}' "
            f"(valid: {', '.join(sorted(VALID_GRACE_KINDS))})"
        )
    if terms.grace_months < 0:
        problems.append("grace_months must be >= 0")
    elif terms.term_months > 0 and terms.grace_months >= terms.term_months:
        problems.append(
            f"grace_months ({terms.grace_months}) must be lower than "
            f"term_months ({terms.term_months})"
        )
    if terms.grace_kind == "none" and terms.grace_months > 0:
        problems.append("grace_months must be 0 when grace_kind is 'none'")
    if terms.upfront_costs < ZERO:
        problems.append("upfront_costs must be >= 0")
    if terms.tax_rate < ZERO:
        problems.append("tax_rate must be >= 0")
    try:
        validate_policy(terms.insurance)
    except ValueError as exc:
        problems.append(str(exc))
    return problems


@dataclass(frozen=True)
class PeriodRow:
    month: int
    phase: Phase
    opening_balance: float
    base_installment: float     # French installment, 0 during grace
    interest_accrued: float
    principal_amortized: float  # negative while interest is capitalised
    insurance_premium: float
    transaction_tax: float
    total_installment: float    # what the borrower pays this month
    ending_balance: float


@dataclass(frozen=True)
class Schedule:
    rows: tuple[PeriodRow, ...]
    cashflows: tuple[float, ...]
    constant_installment: float
    balance_after_grace: float


def compute_installment(balance: float, rate: float, periods: int) -> float:
    """Constant French installment repaying *balance* over *periods*.

        C = P * i * (1 + i)^n / ((1 + i)^n - 1)

    Special cases: C = P / n when i == 0; C = 0 when no periods remain.
    """
    if periods <= 0:
        return ZERO
    if rate == ZERO:
        return balance / periods
    factor = (1 + rate) ** periods
    return balance * rate * factor / (factor - 1)


def build_schedule(terms: LoanTerms) -> Schedule:
    """Build the month-by-month schedule and the client cash-flow vector."""
    rate = terms.monthly_rate
    balance = terms.financed_principal
    amortizing_periods = terms.term_months - terms.grace_months

    rows: list[PeriodRow] = []
    cashflows: list[float] = [terms.net_disbursement]
    installment: Optional[float] = None
    balance_after_grace = balance

    for month in range(1, terms.term_months + 1):
        phase = terms.phase_for(month)
        opening = balance
        interest = opening * rate

        if phase is Phase.AMORTIZING:
            if installment is None:
                balance_after_grace = opening
                installment = compute_installment(opening, rate, amortizing_periods)
                logger.debug(
                    "Amortizing from month %d: balance=%.6f installment=%.6f over %d periods",
                    month, opening, installment, amortizing_periods,
                )
            base = installment
            if month == terms.term_months:
                # Last period retires whatever float drift left on the balance.
                amortized = opening
            else:
                # Never grow the balance, never overshoot it.
                amortized = min(max(installment - interest, ZERO), opening)
            ending = opening - amortized
            insurance = premium(terms.insurance, opening, rate, ending_balance=ending)
            tax = (base + insurance) * terms.tax_rate
            total = base + insurance + tax

        elif phase is Phase.INTEREST_ONLY_GRACE:
            base = ZERO
            amortized = ZERO
            ending = opening
            insurance = premium(terms.insurance, opening, rate, ending_balance=ending)
            tax = (interest + insurance) * terms.tax_rate
            total = interest + insurance + tax

        else:  # full deferral: capitalise interest, pay nothing unless insurance is collected
            base = ZERO
            amortized = -interest
            ending = opening + interest
            if terms.collect_insurance_during_full_deferral:
                insurance = premium(terms.insurance, opening, rate, ending_balance=ending)
            else:
                insurance = ZERO
            tax = insurance * terms.tax_rate
            total = insurance + tax

        rows.append(
            PeriodRow(
                month=month,
                phase=phase,
                opening_balance=opening,
                base_installment=base,
                interest_accrued=interest,
                principal_amortized=amortized,
                insurance_premium=insurance,
                transaction_tax=tax,
                total_installment=total,
                ending_balance=ending,
            )
        )
        cashflows.append(-total)
        balance = ending

    return Schedule(
        rows=tuple(rows),
        cashflows=tuple(cashflows),
        constant_installment=installment if installment is not None else ZERO,
        balance_after_grace=balance_after_grace,
    )


@dataclass(frozen=True)
class SimulationResult:
    terms: LoanTerms
    rows: tuple[PeriodRow, ...]
    cashflows: tuple[float, ...]
    monthly_rate: float
    constant_installment: float
    financed_principal: float
    balance_after_grace: float
    net_disbursement: float
    monthly_irr: Optional[float]
    tcea: Optional[float]          # None exactly when monthly_irr is None
    total_interest: float
    total_insurance: float
    total_tax: float
    total_paid: float
    npv_at_contract_rate: float

    def as_dict(self) -> dict[str, object]:
        """Plain, JSON-serialisable view for storage and report rendering."""
        data = asdict(self)
        data["rows"] = [
            {**asdict(row), "phase": row.phase.value} for row in self.rows
        ]
        data["cashflows"] = list(self.cashflows)
        data["terms"] = {
            **asdict(self.terms),
            "insurance": {
                "kind": type(self.terms.insurance).__name__,
                **asdict(self.terms.insurance),
            },
        }
        return data


def simulate(terms: LoanTerms) -> SimulationResult:
    """Compute the schedule, cost totals, monthly IRR and TCEA for *terms*."""
    schedule = build_schedule(terms)
    rate = terms.monthly_rate

    monthly_irr = internal_rate(schedule.cashflows)
    effective_cost = annualized_cost(monthly_irr)
    if effective_cost is None:
        logger.info("No IRR for this cash-flow vector; TCEA is unavailable")

    return SimulationResult(
        terms=terms,
        rows=schedule.rows,
        cashflows=schedule.cashflows,
        monthly_rate=rate,
        constant_installment=schedule.constant_installment,
        financed_principal=terms.financed_principal,
        balance_after_grace=schedule.balance_after_grace,
        net_disbursement=terms.net_disbursement,
        monthly_irr=monthly_irr,
        tcea=effective_cost,
        total_interest=sum(row.interest_accrued for row in schedule.rows),
        total_insurance=sum(row.insurance_premium for row in schedule.rows),
        total_tax=sum(row.transaction_tax for row in schedule.rows),
        total_paid=sum(row.total_installment for row in schedule.rows),
        npv_at_contract_rate=present_value(rate, schedule.cashflows),
    )
