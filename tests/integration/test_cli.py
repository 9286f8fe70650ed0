"""Integration tests for the CLI — full pipeline from options to rendered result."""
import json

import pytest
from click.testing import CliRunner

from tcea_simulator.calculator import simulate
from tcea_simulator.cli import _fmt_money, main
from tcea_simulator.resolver import Bonus, LoanRequest, resolve

BASE_ARGS = [
    "--price", "150000",
    "--down-payment", "30000",
    "--rate", "0.10",
    "--term", "240",
]


# ──────────────────────────────────────────────────────────────────────────────
# Full pipeline tests (no CLI runner — direct function call)
# ──────────────────────────────────────────────────────────────────────────────

class TestPipeline:
    @pytest.mark.parametrize("grace_kind", ["none", "interest-only", "full-deferral"])
    def test_each_grace_kind_produces_tcea(self, grace_kind):
        resolved = resolve(LoanRequest(
            sale_price=150000.0,
            down_payment=30000.0,
            rate_value=0.10,
            term_months=240,
            grace_months=0 if grace_kind == "none" else 6,
            grace_kind=grace_kind,
        ))
        result = simulate(resolved.terms)
        assert len(result.rows) == 240
        assert result.rows[-1].ending_balance == pytest.approx(0.0, abs=1e-6)
        assert result.tcea is not None
        assert result.tcea > 0.10

    def test_deferral_costs_more_than_interest_only(self):
        def _tcea(kind):
            request = LoanRequest(
                sale_price=150000.0,
                rate_value=0.10,
                term_months=120,
                grace_months=12,
                grace_kind=kind,
                bonuses=(Bonus("BBP", 10000.0),),
            )
            return simulate(resolve(request).terms)

        deferral, interest_only = _tcea("full-deferral"), _tcea("interest-only")
        assert deferral.total_interest > interest_only.total_interest
        assert deferral.constant_installment > interest_only.constant_installment


class TestCLIRunner:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "TCEA" in result.output

    def test_full_run_via_args(self):
        runner = CliRunner()
        result = runner.invoke(main, BASE_ARGS)
        assert result.exit_code == 0, result.output
        assert "TCEA" in result.output
        assert "Installment" in result.output

    def test_percentage_rate_and_years(self):
        runner = CliRunner()
        result = runner.invoke(
            main, ["--price", "150000", "--down-payment", "30000", "--rate", "10%", "--term", "20y"]
        )
        assert result.exit_code == 0, result.output
        assert "240 months" in result.output

    def test_schedule_and_params(self):
        runner = CliRunner()
        result = runner.invoke(
            main, BASE_ARGS + ["--grace", "3", "--grace-kind", "interest-only", "--schedule", "--params"]
        )
        assert result.exit_code == 0, result.output
        assert "Payment Schedule" in result.output
        assert "Resolved Parameters" in result.output
        assert "grace period" in result.output

    def test_prompts_for_missing_values(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--down-payment", "30000"], input="150000\n0.10\n20y\n")
        assert result.exit_code == 0, result.output
        assert "TCEA" in result.output

    def test_json_output(self):
        runner = CliRunner()
        result = runner.invoke(
            main,
            BASE_ARGS + [
                "--bonus", "BBP=10000",
                "--insurance-rate", "0.0003",
                "--insurance-base", "average-balance",
                "--json",
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["lender"] == "STANDARD"
        assert data["bonuses_total"] == 10000.0
        assert data["financed_principal"] == 110000.0
        assert len(data["rows"]) == 240
        assert data["rows"][0]["phase"] == "amortizing"
        assert data["terms"]["insurance"]["base"] == "average-balance"
        assert data["sources"]["insurance"] == "user"
        assert data["tcea"] > 0.10

    def test_unavailable_tcea(self):
        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "--lender", "DIGITAL",
                "--price", "1000",
                "--rate", "0.10",
                "--term", "12",
                "--notary", "2000",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "TCEA unavailable" in result.output
        assert "—" in result.output

    def test_invalid_grace(self):
        runner = CliRunner()
        result = runner.invoke(main, BASE_ARGS + ["--grace", "240", "--grace-kind", "full-deferral"])
        assert result.exit_code == 1
        assert "Parameter error" in result.output

    def test_grace_without_kind(self):
        runner = CliRunner()
        result = runner.invoke(main, BASE_ARGS + ["--grace", "6"])
        assert result.exit_code == 1
        assert "without a grace_kind" in result.output

    def test_unknown_lender(self):
        runner = CliRunner()
        result = runner.invoke(main, BASE_ARGS + ["--lender", "ZZ"])
        assert result.exit_code == 1
        assert "Unsupported lender" in result.output

    def test_invalid_number(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--price", "abc", "--rate", "0.1", "--term", "240"])
        assert result.exit_code == 1
        assert "Invalid value for --price" in result.output

    def test_conflicting_insurance_options(self):
        runner = CliRunner()
        result = runner.invoke(
            main, BASE_ARGS + ["--insurance-amount", "20", "--insurance-rate", "0.0003"]
        )
        assert result.exit_code == 1
        assert "not both" in result.output

    def test_bad_bonus(self):
        runner = CliRunner()
        result = runner.invoke(main, BASE_ARGS + ["--bonus", "10000"])
        assert result.exit_code == 1
        assert "Invalid --bonus" in result.output


class TestFormatting:
    @pytest.mark.parametrize("value, expected", [
        (0.125, "0.13 PEN"),
        (1234567.5, "1,234,567.50 PEN"),
        (8856.2149, "8,856.21 PEN"),
        (0.0, "0.00 PEN"),
    ])
    def test_money_rounds_half_up_to_cents(self, value, expected):
        assert _fmt_money(value, "PEN") == expected
