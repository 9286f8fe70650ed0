"""Command-line entry point — click options, rich rendering.

Session:
  1. Collect the mandatory values (sale price, rate, term) from options or
     prompt for the missing ones.
  2. Resolve the request against the lender profile and validate it.
  3. Simulate and print the summary (and optionally the schedule), or dump
     the whole result as JSON.
"""
from __future__ import annotations

import json
import logging
import sys
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .calculator import SimulationResult, simulate
from .config import (
    CENT,
    DEFAULT_COMPOUNDING_PERIODS,
    DEFAULT_LENDER,
    VALID_GRACE_KINDS,
    VALID_INSURANCE_BASES,
    VALID_RATE_KINDS,
)
from .insurance import FixedInsurance, InsurancePolicy, PercentageInsurance
from .resolver import Bonus, LoanRequest, ResolvedTerms, resolve

console = Console()
err_console = Console(stderr=True, style="bold red")

UNAVAILABLE = "—"

# ──────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ──────────────────────────────────────────────────────────────────────────────

def _round(value: float) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _fmt_amount(value: float) -> str:
    return f"{_round(value):,.2f}"


def _fmt_money(value: float, currency: str) -> str:
    return f"{_fmt_amount(value)} {currency}"


def _fmt_pct(value: Optional[float], digits: int = 4) -> str:
    if value is None:
        return UNAVAILABLE
    return f"{value * 100:.{digits}f}%"


def _fmt_months(n: int) -> str:
    years, months = divmod(n, 12)
    if months == 0:
        return f"{n} months ({years} years)"
    return f"{n} months ({years}y {months}m)"


# ──────────────────────────────────────────────────────────────────────────────
# Display
# ──────────────────────────────────────────────────────────────────────────────

def display_result(resolved: ResolvedTerms, result: SimulationResult) -> None:
    cur = resolved.currency
    terms = result.terms

    console.print()
    console.print(Panel(
        f"[bold green]Loan cost simulation[/bold green] — "
        f"{resolved.lender.name} / {cur}",
        expand=False,
    ))

    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")

    t.add_row("Financed principal", _fmt_money(result.financed_principal, cur))
    t.add_row("Net disbursement", _fmt_money(result.net_disbursement, cur))
    t.add_row("Term", _fmt_months(terms.term_months))
    if terms.grace_kind != "none":
        t.add_row("Grace", f"{terms.grace_months} months ({terms.grace_kind})")
        t.add_row("Balance after grace", _fmt_money(result.balance_after_grace, cur))
    t.add_row("Monthly rate", _fmt_pct(result.monthly_rate, 6))
    t.add_row("Installment (French)", _fmt_money(result.constant_installment, cur))
    t.add_row("Total interest", _fmt_money(result.total_interest, cur))
    t.add_row("Total insurance", _fmt_money(result.total_insurance, cur))
    t.add_row("Total transaction tax", _fmt_money(result.total_tax, cur))
    t.add_row("Total paid", _fmt_money(result.total_paid, cur))
    t.add_row("NPV at contract rate", _fmt_money(result.npv_at_contract_rate, cur))
    t.add_row("IRR (monthly)", _fmt_pct(result.monthly_irr, 6))
    t.add_row("[bold]TCEA[/bold]", f"[bold]{_fmt_pct(result.tcea)}[/bold]")
    console.print(t)

    if result.tcea is None:
        console.print(
            "[yellow]TCEA unavailable: the cash flows for these terms have no "
            "internal rate of return.[/yellow]"
        )


def display_schedule(result: SimulationResult, currency: str) -> None:
    t = Table(title=f"Payment Schedule ({currency})", box=box.MINIMAL_HEAVY_HEAD)
    for col in ("Month", "Installment", "Interest", "Amortization", "Insurance", "Tax", "Total", "Balance"):
        t.add_column(col, justify="right")

    for row in result.rows:
        month = f"{row.month}*" if row.phase.is_grace else str(row.month)
        t.add_row(
            month,
            _fmt_amount(row.base_installment),
            _fmt_amount(row.interest_accrued),
            _fmt_amount(row.principal_amortized),
            _fmt_amount(row.insurance_premium),
            _fmt_amount(row.transaction_tax),
            _fmt_amount(row.total_installment),
            _fmt_amount(row.ending_balance),
        )
    console.print(t)
    if result.terms.grace_months:
        console.print("  [dim]* grace period[/dim]")


def display_params(resolved: ResolvedTerms) -> None:
    t = Table(title="Resolved Parameters", box=box.SIMPLE, show_header=True, padding=(0, 2))
    t.add_column("Parameter", style="cyan")
    t.add_column("Value", justify="right")
    t.add_column("Source", style="dim")

    terms = resolved.terms
    cur = resolved.currency
    src = resolved.sources

    t.add_row("lender", resolved.lender.code, src.get("lender", ""))
    t.add_row("bonuses", _fmt_money(resolved.bonuses_total, cur))
    t.add_row("tax_rate", _fmt_pct(terms.tax_rate, 4), src.get("tax_rate", ""))
    t.add_row("upfront_costs", _fmt_money(terms.upfront_costs, cur), "derived")
    t.add_row("finance_upfront_costs", str(terms.finance_upfront_costs))
    t.add_row("insurance", _describe_insurance(terms.insurance, cur), src.get("insurance", ""))
    t.add_row(
        "insurance_in_full_deferral",
        str(terms.collect_insurance_during_full_deferral),
        src.get("collect_insurance_during_full_deferral", ""),
    )
    console.print(t)


def _describe_insurance(policy: InsurancePolicy, currency: str) -> str:
    if isinstance(policy, FixedInsurance):
        return f"{_fmt_money(policy.amount, currency)} / month"
    return f"{_fmt_pct(policy.monthly_rate, 4)} / month on {policy.base}"


# ──────────────────────────────────────────────────────────────────────────────
# Input helpers
# ──────────────────────────────────────────────────────────────────────────────

def _to_float(raw: str) -> float:
    text = raw.strip().replace(" ", "").replace(",", ".")
    if text.endswith("%"):
        return float(text[:-1]) / 100
    return float(text)


def _parse_opt(raw: Optional[str], name: str) -> Optional[float]:
    if raw is None:
        return None
    try:
        return _to_float(raw)
    except ValueError:
        err_console.print(f"Invalid value for --{name}: '{raw}'")
        sys.exit(1)


def _parse_term(raw: str) -> int:
    text = raw.strip().lower()
    if text.endswith("y"):
        return int(text[:-1]) * 12
    return int(text)


def _parse_bonus(raw: str) -> Bonus:
    name, sep, amount = raw.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"expected NAME=AMOUNT, got '{raw}'")
    return Bonus(name=name.strip(), amount=_to_float(amount))


def _prompt_number(prompt: str) -> float:
    while True:
        raw = console.input(f"[bold]{prompt}[/bold] ").strip()
        try:
            value = _to_float(raw)
        except ValueError:
            err_console.print(f"  Invalid number: '{raw}'")
            continue
        if value <= 0:
            err_console.print("  Value must be > 0.")
            continue
        return value


def _prompt_term() -> int:
    while True:
        raw = console.input("[bold]Term (months, e.g. 240, or years, e.g. 20y)?[/bold] ").strip()
        try:
            value = _parse_term(raw)
        except ValueError:
            err_console.print(f"  Invalid term: '{raw}'")
            continue
        if value < 1:
            err_console.print("  Value must be >= 1.")
            continue
        return value


def _build_insurance(
    amount: Optional[float], rate: Optional[float], base: Optional[str]
) -> Optional[InsurancePolicy]:
    if amount is not None and rate is not None:
        err_console.print("Use either --insurance-amount or --insurance-rate, not both.")
        sys.exit(1)
    if amount is not None:
        return FixedInsurance(amount=amount)
    if rate is not None:
        return PercentageInsurance(monthly_rate=rate, base=base or "period-start-balance")  # type: ignore[arg-type]
    if base is not None:
        err_console.print("--insurance-base requires --insurance-rate.")
        sys.exit(1)
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Click entry point
# ──────────────────────────────────────────────────────────────────────────────

@click.command()
@click.option("--price", type=str, default=None, help="Sale price of the property")
@click.option("--down-payment", type=str, default=None, help="Down payment (default: 0)")
@click.option("--bonus", "bonuses", multiple=True, help="Subsidy deducted from the price, NAME=AMOUNT (repeatable)")
@click.option("--rate", type=str, default=None, help="Annual rate as a proportion (0.12) or percentage (12%)")
@click.option("--rate-kind", type=click.Choice(sorted(VALID_RATE_KINDS)), default="effective-annual", show_default=True)
@click.option("--compounding", type=int, default=DEFAULT_COMPOUNDING_PERIODS, show_default=True, help="Capitalisations per year for nominal rates")
@click.option("--term", type=str, default=None, help="Term: months (e.g. 240) or years (e.g. 20y)")
@click.option("--grace", type=int, default=0, show_default=True, help="Grace months")
@click.option("--grace-kind", type=click.Choice(sorted(VALID_GRACE_KINDS)), default="none", show_default=True)
@click.option("--lender", type=str, default=None, help=f"Lender profile (default: {DEFAULT_LENDER})")
@click.option("--currency", type=str, default=None, help="Currency label (default: lender's)")
@click.option("--tax-rate", type=str, default=None, help="Per-installment transaction tax (overrides lender)")
@click.option("--notary", type=str, default=None, help="Notary fees (overrides lender)")
@click.option("--registry", type=str, default=None, help="Registry fees (overrides lender)")
@click.option("--appraisal", type=str, default=None, help="Appraisal fee (overrides lender)")
@click.option("--finance-costs/--no-finance-costs", default=False, show_default=True, help="Add upfront costs to the financed balance")
@click.option("--insurance-amount", type=str, default=None, help="Fixed monthly insurance premium")
@click.option("--insurance-rate", type=str, default=None, help="Monthly insurance rate over the balance")
@click.option("--insurance-base", type=click.Choice(sorted(VALID_INSURANCE_BASES)), default=None)
@click.option("--insurance-in-deferral/--no-insurance-in-deferral", default=None, help="Collect insurance during full-deferral grace (default: lender's)")
@click.option("--schedule", "show_schedule", is_flag=True, help="Print the month-by-month schedule")
@click.option("--params", "show_params", is_flag=True, help="Print the resolved parameters and their source")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(
    price: Optional[str],
    down_payment: Optional[str],
    bonuses: tuple[str, ...],
    rate: Optional[str],
    rate_kind: str,
    compounding: int,
    term: Optional[str],
    grace: int,
    grace_kind: str,
    lender: Optional[str],
    currency: Optional[str],
    tax_rate: Optional[str],
    notary: Optional[str],
    registry: Optional[str],
    appraisal: Optional[str],
    finance_costs: bool,
    insurance_amount: Optional[str],
    insurance_rate: Optional[str],
    insurance_base: Optional[str],
    insurance_in_deferral: Optional[bool],
    show_schedule: bool,
    show_params: bool,
    as_json: bool,
    verbose: bool,
) -> None:
    """Loan total-cost (TCEA) simulator."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if not as_json:
        console.print(Panel("[bold blue]TCEA Simulator[/bold blue]", expand=False))

    sale_price = _parse_opt(price, "price")
    if sale_price is None:
        sale_price = _prompt_number("Sale price?")

    annual_rate = _parse_opt(rate, "rate")
    if annual_rate is None:
        annual_rate = _prompt_number("Annual rate (e.g. 0.12 or 12%)?")

    if term is None:
        term_months = _prompt_term()
    else:
        try:
            term_months = _parse_term(term)
        except ValueError:
            err_console.print(f"Invalid --term value '{term}'. Use months (e.g. 240) or years (e.g. 20y).")
            sys.exit(1)

    try:
        parsed_bonuses = tuple(_parse_bonus(raw) for raw in bonuses)
    except ValueError as exc:
        err_console.print(f"Invalid --bonus: {exc}")
        sys.exit(1)

    request = LoanRequest(
        sale_price=sale_price,
        rate_value=annual_rate,
        term_months=term_months,
        down_payment=_parse_opt(down_payment, "down-payment") or 0.0,
        bonuses=parsed_bonuses,
        rate_kind=rate_kind,  # type: ignore[arg-type]
        compounding_periods_per_year=compounding,
        grace_months=grace,
        grace_kind=grace_kind,  # type: ignore[arg-type]
        finance_upfront_costs=finance_costs,
        lender=lender,
        currency=currency,
        tax_rate=_parse_opt(tax_rate, "tax-rate"),
        notary_fees=_parse_opt(notary, "notary"),
        registry_fees=_parse_opt(registry, "registry"),
        appraisal_fee=_parse_opt(appraisal, "appraisal"),
        insurance=_build_insurance(
            _parse_opt(insurance_amount, "insurance-amount"),
            _parse_opt(insurance_rate, "insurance-rate"),
            insurance_base,
        ),
        collect_insurance_during_full_deferral=insurance_in_deferral,
    )

    try:
        resolved = resolve(request)
    except ValueError as exc:
        err_console.print(f"Parameter error: {exc}")
        sys.exit(1)

    result = simulate(resolved.terms)

    if as_json:
        payload = {
            "lender": resolved.lender.code,
            "currency": resolved.currency,
            "bonuses_total": resolved.bonuses_total,
            "sources": resolved.sources,
            **result.as_dict(),
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if show_params:
        display_params(resolved)
    display_result(resolved, result)
    if show_schedule:
        display_schedule(result, resolved.currency)
