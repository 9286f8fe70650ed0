"""Static lender (financial entity) profiles.

A profile supplies the defaults a simulation falls back on when the user
does not override them: transaction tax, one-time fees, life-insurance
policy and the term/rate ranges the lender is willing to offer.
Rates are effective annual proportions (0.10 = 10 %).
"""
from __future__ import annotations

from dataclasses import dataclass

from .config import DEFAULT_LENDER, Currency
from .insurance import FixedInsurance, InsurancePolicy, PercentageInsurance


@dataclass(frozen=True)
class LenderProfile:
    code: str
    name: str
    currency: Currency
    tax_rate: float                 # per-installment transaction tax (ITF)
    notary_fees: float
    registry_fees: float
    appraisal_fee: float
    insurance: InsurancePolicy
    collect_insurance_during_full_deferral: bool
    min_term_months: int
    max_term_months: int
    min_annual_rate: float
    max_annual_rate: float

    @property
    def upfront_costs(self) -> float:
        return self.notary_fees + self.registry_fees + self.appraisal_fee


_LENDERS: dict[str, LenderProfile] = {
    "STANDARD": LenderProfile(
        code="STANDARD",
        name="Standard mortgage bank",
        currency="PEN",
        tax_rate=0.00005,
        notary_fees=350.0,
        registry_fees=250.0,
        appraisal_fee=400.0,
        insurance=PercentageInsurance(monthly_rate=0.00028, base="period-start-balance"),
        collect_insurance_during_full_deferral=False,
        min_term_months=60,
        max_term_months=300,
        min_annual_rate=0.05,
        max_annual_rate=0.20,
    ),
    "AVERAGE": LenderProfile(
        code="AVERAGE",
        name="Average-balance insurer",
        currency="PEN",
        tax_rate=0.00005,
        notary_fees=300.0,
        registry_fees=200.0,
        appraisal_fee=350.0,
        insurance=PercentageInsurance(monthly_rate=0.00049, base="average-balance"),
        collect_insurance_during_full_deferral=True,
        min_term_months=12,
        max_term_months=240,
        min_annual_rate=0.06,
        max_annual_rate=0.18,
    ),
    "DIGITAL": LenderProfile(
        code="DIGITAL",
        name="Digital lender (USD)",
        currency="USD",
        tax_rate=0.0,
        notary_fees=0.0,
        registry_fees=0.0,
        appraisal_fee=0.0,
        insurance=FixedInsurance(amount=25.0),
        collect_insurance_during_full_deferral=False,
        min_term_months=1,
        max_term_months=360,
        min_annual_rate=0.01,
        max_annual_rate=0.30,
    ),
}

SUPPORTED_LENDERS = frozenset(_LENDERS.keys())


def get_lender(code: str = DEFAULT_LENDER) -> LenderProfile:
    """Return the profile for lender *code* (upper-cased).

    Raises ValueError for unknown lender codes.
    """
    key = code.upper()
    if key not in _LENDERS:
        raise ValueError(
            f"Unsupported lender '{key}'. "
            f"Supported lenders: {', '.join(sorted(SUPPORTED_LENDERS))}"
        )
    return _LENDERS[key]
