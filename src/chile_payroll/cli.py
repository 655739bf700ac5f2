"""Payroll Command Line Interface.

Usage:
    python -m chile_payroll calculate --request liquidation.json
    python -m chile_payroll calculate --request liquidation.json --settings company.json --json
    python -m chile_payroll defaults
    python -m chile_payroll gratification-cap --minimum-wage 529000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from chile_payroll.calculators.engine import (
    PayrollCalculator,
    UnknownFundPolicy,
    UnknownPensionFundError,
)
from chile_payroll.calculators.rules import (
    JurisdictionRules,
    RulesConfigurationError,
    default_rules,
)
from chile_payroll.calculators.types import LiquidationResult
from chile_payroll.calculators.validation import (
    LiquidationInputError,
    validate_liquidation_input,
)
from chile_payroll.config import Settings, SettingsError, get_settings
from chile_payroll.formatting import format_clp, format_period
from chile_payroll.indicators import gratification_cap
from chile_payroll.schemas import LiquidationRequest, PayrollSettingsPayload

logger = logging.getLogger(__name__)


def parse_decimal(s: str) -> Decimal:
    """Parse a decimal argument."""
    try:
        return Decimal(s)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Not a number: {s}") from None


def load_json(path: str | Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class PayrollCli:
    """Payroll Command Line Interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m chile_payroll",
            description="Chilean payroll liquidation tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # calculate command
        calculate = subparsers.add_parser(
            "calculate",
            help="Calculate a liquidation from a JSON request",
        )
        calculate.add_argument(
            "--request",
            required=True,
            help="Path to the liquidation request JSON",
        )
        calculate.add_argument(
            "--settings",
            help="Path to company payroll settings JSON (default: built-in rules)",
        )
        calculate.add_argument(
            "--uf",
            type=parse_decimal,
            help="UF value in pesos (default: PAYROLL_UF_VALUE)",
        )
        calculate.add_argument(
            "--utm",
            type=parse_decimal,
            help="UTM value in pesos (default: PAYROLL_UTM_VALUE)",
        )
        calculate.add_argument(
            "--unknown-fund",
            choices=[p.value for p in UnknownFundPolicy],
            help="Policy for unknown AFP codes (default: PAYROLL_UNKNOWN_FUND_POLICY)",
        )
        calculate.add_argument(
            "--json",
            action="store_true",
            help="Print the full result as JSON",
        )

        # defaults command
        defaults = subparsers.add_parser(
            "defaults",
            help="Show the rule set the calculator would use",
        )
        defaults.add_argument(
            "--settings",
            help="Path to company payroll settings JSON",
        )

        # gratification-cap command
        grat = subparsers.add_parser(
            "gratification-cap",
            help="Show the monthly legal gratification cap",
        )
        grat.add_argument(
            "--minimum-wage",
            type=parse_decimal,
            help="Minimum wage in pesos (default: PAYROLL_MINIMUM_WAGE)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[..., int]] = {
            "calculate": self._cmd_calculate,
            "defaults": self._cmd_defaults,
            "gratification-cap": self._cmd_gratification_cap,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except (OSError, json.JSONDecodeError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        except ValidationError as e:
            print(f"ERROR: invalid payload\n{e}", file=sys.stderr)
            return 1
        except (
            LiquidationInputError,
            UnknownPensionFundError,
            RulesConfigurationError,
            SettingsError,
        ) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _load_rules(
        self,
        settings_path: str | None,
        uf: Decimal | None = None,
        utm: Decimal | None = None,
    ) -> JurisdictionRules:
        uf = uf if uf is not None else self.settings.uf_value
        utm = utm if utm is not None else self.settings.utm_value
        path = settings_path or self.settings.settings_file
        if path is None:
            return default_rules(uf_value=uf, utm_value=utm)

        logger.info("Loading payroll settings from %s", path)
        payload = PayrollSettingsPayload.model_validate(load_json(path))
        return payload.to_rules(uf_value=uf, utm_value=utm)

    def _cmd_calculate(self, args: argparse.Namespace) -> int:
        """Calculate a liquidation."""
        request = LiquidationRequest.model_validate(load_json(args.request))
        rules = self._load_rules(args.settings, args.uf, args.utm)

        employee = request.employee.to_snapshot()
        period = request.to_period()
        income = request.to_income()
        deductions = request.to_deductions()

        report = validate_liquidation_input(
            employee,
            period,
            income,
            deductions,
            min_year=self.settings.min_year,
            max_year=self.settings.max_year,
            minimum_wage=self.settings.minimum_wage,
        )
        report.raise_for_errors()

        policy = args.unknown_fund or self.settings.unknown_fund_policy
        try:
            unknown_fund_policy = UnknownFundPolicy(policy)
        except ValueError:
            raise SettingsError(
                f"Unknown fund policy must be one of "
                f"{', '.join(p.value for p in UnknownFundPolicy)}, got {policy!r}"
            ) from None
        calculator = PayrollCalculator(
            rules,
            unknown_fund_policy=unknown_fund_policy,
            engine_version=self.settings.engine_version,
        )
        result = calculator.calculate(employee, period, income, deductions)

        if args.json:
            output = result.to_dict()
            output["input_warnings"] = report.warnings
            print(json.dumps(output, indent=2, ensure_ascii=False))
        else:
            for warning in report.warnings:
                print(f"! {warning}")
            self._print_result(result)

        return 0

    def _print_result(self, result: LiquidationResult) -> None:
        employee = result.employee
        print(f"Liquidación {format_period(result.period.year, result.period.month)}")
        print(f"{employee.full_name} ({employee.rut})")
        print("=" * 48)

        rows = [
            ("Sueldo base", result.base_salary),
            ("Horas extra", result.overtime_amount),
            ("Bonos", result.bonuses),
            ("Comisiones", result.commissions),
            ("Gratificación", result.gratification),
            ("Total imponible", result.total_taxable_income),
            ("Colación", result.food_allowance),
            ("Movilización", result.transport_allowance),
            ("Asignación familiar", result.family_allowance),
            ("Total no imponible", result.total_non_taxable_income),
            (f"AFP {result.afp_percentage}%", -result.afp_amount),
            (f"Comisión AFP {result.afp_commission_percentage}%", -result.afp_commission_amount),
            (f"SIS {result.sis_percentage}%", -result.sis_amount),
            (f"Salud {result.health_percentage}%", -result.health_amount),
            (f"Cesantía {result.unemployment_percentage}%", -result.unemployment_amount),
            ("Impuesto único", -result.income_tax_amount),
            ("Otros descuentos", -result.total_other_deductions),
        ]
        for label, amount in rows:
            if amount:
                print(f"  {label:<28}{format_clp(amount):>18}")

        print("-" * 48)
        print(f"  {'Total haberes':<28}{format_clp(result.total_gross_income):>18}")
        print(f"  {'Total descuentos':<28}{format_clp(-result.total_deductions):>18}")
        print(f"  {'Líquido a pagar':<28}{format_clp(result.net_salary):>18}")

        for warning in result.warnings:
            print(f"! {warning}")

    def _cmd_defaults(self, args: argparse.Namespace) -> int:
        """Print the rule set as JSON."""
        rules = self._load_rules(args.settings)
        data = rules.to_canonical_dict()
        data["taxable_income_cap"] = str(rules.taxable_income_cap)
        data["tax_exempt_threshold"] = str(rules.tax_exempt_threshold)
        print(json.dumps(data, indent=2, ensure_ascii=False))
        return 0

    def _cmd_gratification_cap(self, args: argparse.Namespace) -> int:
        """Print the monthly gratification cap."""
        minimum_wage = args.minimum_wage or self.settings.minimum_wage
        print(format_clp(gratification_cap(minimum_wage)))
        return 0


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    try:
        settings = get_settings()
    except SettingsError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cli = PayrollCli(settings)
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
