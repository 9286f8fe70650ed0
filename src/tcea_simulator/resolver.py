"""Request resolution and validation.

Resolution order:
1. lender defaults to STANDARD; currency follows the lender unless given.
2. principal = sale_price - down_payment - sum(bonuses).
3. Each optional cost/tax/insurance field falls back to the lender profile.
4. upfront_costs = notary + registry + appraisal fees.
5. grace_months > 0 requires a grace_kind other than 'none'.
6. LoanTerms validates the configuration; the lender's term and rate
   ranges are checked last.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .calculator import InvalidTermsError, LoanTerms
from .config import (
    DEFAULT_COMPOUNDING_PERIODS,
    DEFAULT_GRACE_KIND,
    DEFAULT_LENDER,
    DEFAULT_RATE_KIND,
    SUPPORTED_CURRENCIES,
    GraceKind,
    RateKind,
    ZERO,
)
from .insurance import InsurancePolicy
from .lenders import LenderProfile, get_lender
from .rates import effective_annual_rate


@dataclass(frozen=True)
class Bonus:
    """Named subsidy deducted from the sale price (e.g. a housing bonus)."""
    name: str
    amount: float


@dataclass
class LoanRequest:
    """Raw user-supplied values.  None means 'not provided — use lender default'."""
    # Mandatory
    sale_price: float
    rate_value: float
    term_months: int
    # Financing structure
    down_payment: float = ZERO
    bonuses: tuple[Bonus, ...] = ()
    rate_kind: RateKind = DEFAULT_RATE_KIND
    compounding_periods_per_year: int = DEFAULT_COMPOUNDING_PERIODS
    grace_months: int = 0
    grace_kind: GraceKind = DEFAULT_GRACE_KIND
    finance_upfront_costs: bool = False
    # Lender-backed optional values
    lender: Optional[str] = None
    currency: Optional[str] = None
    tax_rate: Optional[float] = None
    notary_fees: Optional[float] = None
    registry_fees: Optional[float] = None
    appraisal_fee: Optional[float] = None
    insurance: Optional[InsurancePolicy] = None
    collect_insurance_during_full_deferral: Optional[bool] = None


@dataclass(frozen=True)
class ResolvedTerms:
    """Validated loan terms plus the context they were resolved from."""
    terms: LoanTerms
    lender: LenderProfile
    currency: str
    bonuses_total: float
    # Provenance — 'user' or 'lender' for each optional value
    sources: dict[str, str] = field(default_factory=dict)


def resolve(request: LoanRequest) -> ResolvedTerms:
    """Resolve all parameters and return validated, engine-ready terms.

    Raises ValueError for an unknown lender and InvalidTermsError for any
    parameter combination that cannot describe a loan.
    """
    sources: dict[str, str] = {"lender": "user" if request.lender else "default"}
    lender = get_lender(request.lender or DEFAULT_LENDER)

    def _resolve(user_val, lender_val, name: str):
        if user_val is not None:
            sources[name] = "user"
            return user_val
        sources[name] = "lender"
        return lender_val

    currency = str(_resolve(request.currency, lender.currency, "currency")).upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise InvalidTermsError(
            f"Unsupported currency '{currency}'. "
            f"Supported currencies: {', '.join(sorted(SUPPORTED_CURRENCIES))}"
        )

    # --- principal ---
    if request.sale_price <= ZERO:
        raise InvalidTermsError("sale_price must be > 0")
    if request.down_payment < ZERO:
        raise InvalidTermsError("down_payment must be >= 0")
    if any(bonus.amount < ZERO for bonus in request.bonuses):
        raise InvalidTermsError("bonus amounts must be >= 0")
    bonuses_total = sum((bonus.amount for bonus in request.bonuses), ZERO)
    principal = request.sale_price - request.down_payment - bonuses_total
    if principal <= ZERO:
        raise InvalidTermsError(
            f"Nothing to finance: down payment ({request.down_payment:,.2f}) and bonuses "
            f"({bonuses_total:,.2f}) cover the sale price ({request.sale_price:,.2f})."
        )

    # --- lender-backed values ---
    tax_rate = _resolve(request.tax_rate, lender.tax_rate, "tax_rate")
    notary = _resolve(request.notary_fees, lender.notary_fees, "notary_fees")
    registry = _resolve(request.registry_fees, lender.registry_fees, "registry_fees")
    appraisal = _resolve(request.appraisal_fee, lender.appraisal_fee, "appraisal_fee")
    insurance = _resolve(request.insurance, lender.insurance, "insurance")
    collect_in_deferral = _resolve(
        request.collect_insurance_during_full_deferral,
        lender.collect_insurance_during_full_deferral,
        "collect_insurance_during_full_deferral",
    )
    for name, amount in (("notary_fees", notary), ("registry_fees", registry), ("appraisal_fee", appraisal)):
        if amount < ZERO:
            raise InvalidTermsError(f"{name} must be >= 0")

    if request.grace_kind == "none" and request.grace_months > 0:
        raise InvalidTermsError(
            f"grace_months ({request.grace_months}) given without a grace_kind; "
            "choose one of: interest-only, full-deferral"
        )

    terms = LoanTerms(
        principal=principal,
        term_months=request.term_months,
        rate_kind=request.rate_kind,
        rate_value=request.rate_value,
        compounding_periods_per_year=request.compounding_periods_per_year,
        grace_months=request.grace_months,
        grace_kind=request.grace_kind,
        upfront_costs=notary + registry + appraisal,
        finance_upfront_costs=request.finance_upfront_costs,
        tax_rate=tax_rate,
        insurance=insurance,
        collect_insurance_during_full_deferral=bool(collect_in_deferral),
    )
    check_lender_limits(terms, lender)

    return ResolvedTerms(
        terms=terms,
        lender=lender,
        currency=currency,
        bonuses_total=bonuses_total,
        sources=sources,
    )


def check_lender_limits(terms: LoanTerms, lender: LenderProfile) -> None:
    """Raise InvalidTermsError if the lender does not offer these terms."""
    if not lender.min_term_months <= terms.term_months <= lender.max_term_months:
        raise InvalidTermsError(
            f"Term of {terms.term_months} months is outside {lender.code}'s range "
            f"({lender.min_term_months}–{lender.max_term_months} months)."
        )

    annual = effective_annual_rate(
        terms.rate_kind, terms.rate_value, terms.compounding_periods_per_year
    )
    if not lender.min_annual_rate <= annual <= lender.max_annual_rate:
        raise InvalidTermsError(
            f"Effective annual rate {annual:.4%} is outside {lender.code}'s range "
            f"({lender.min_annual_rate:.2%}–{lender.max_annual_rate:.2%})."
        )
