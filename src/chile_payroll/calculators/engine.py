"""Payroll liquidation calculator - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from chile_payroll.calculators.line_builder import LineItemBuilder
from chile_payroll.calculators.rules import JurisdictionRules
from chile_payroll.calculators.tax_calculator import IncomeTaxCalculator
from chile_payroll.calculators.types import (
    AdditionalDeductions,
    AdditionalIncome,
    EmployeeSnapshot,
    LineCandidate,
    LiquidationResult,
    PayPeriod,
)
from chile_payroll.formatting import format_clp

logger = logging.getLogger(__name__)

FULL_MONTH_DAYS = 30


class UnknownFundPolicy(str, Enum):
    """What to do when an employee's AFP code is not in the rules."""

    DEFAULT = "default"  # silently use the default commission
    WARN = "warn"  # use the default commission and add a warning
    ERROR = "error"  # raise UnknownPensionFundError


class UnknownPensionFundError(Exception):
    """Raised when the AFP code is unknown and the policy is ERROR."""

    def __init__(self, afp_code: str, known_codes: list[str]):
        self.afp_code = afp_code
        self.known_codes = known_codes
        super().__init__(
            f"Unknown pension fund code '{afp_code}'; known codes: {', '.join(known_codes)}"
        )


class PayrollCalculator:
    """Chilean salary liquidation calculator.

    Calculation pipeline (stable order):
    1) Proportional base salary (30-day month)
    2) Taxable income
    3) Clamp to the taxable cap (tope imponible)
    4) Family allowance from the unclamped base salary
    5) Non-taxable income
    6) AFP contribution, AFP commission, SIS
    7) Health
    8) Unemployment insurance by contract type
    9) Income tax
    10) Other deductions
    11) Totals
    12) Advisory 45% deduction check

    Every rate-based amount is rounded to whole pesos when computed.
    The calculator holds no per-call state and may be shared between
    threads.
    """

    def __init__(
        self,
        rules: JurisdictionRules,
        unknown_fund_policy: UnknownFundPolicy = UnknownFundPolicy.DEFAULT,
        engine_version: str | None = None,
    ):
        self.rules = rules
        self.unknown_fund_policy = UnknownFundPolicy(unknown_fund_policy)
        self.tax_calculator = IncomeTaxCalculator(rules)
        if engine_version is None:
            from chile_payroll.config import get_settings

            engine_version = get_settings().engine_version
        self.engine_version = engine_version

    def calculate(
        self,
        employee: EmployeeSnapshot,
        period: PayPeriod,
        additional_income: AdditionalIncome | None = None,
        additional_deductions: AdditionalDeductions | None = None,
        calculated_at: datetime | None = None,
    ) -> LiquidationResult:
        """Calculate the liquidation for one employee and period."""
        income = additional_income or AdditionalIncome()
        deductions = additional_deductions or AdditionalDeductions()
        rules = self.rules
        peso = LineItemBuilder.round_to_peso
        warnings: list[str] = []
        lines: list[LineCandidate] = []

        # 1) Proportional base salary
        base_salary = self.proportional_salary(employee.base_salary, period.days_worked)

        # 2) Taxable income
        overtime = peso(income.overtime_amount)
        bonuses = peso(income.bonuses)
        commissions = peso(income.commissions)
        gratification = peso(income.gratification)
        total_taxable = base_salary + overtime + bonuses + commissions + gratification

        for code, amount in (
            ("SUELDO_BASE", base_salary),
            ("HORAS_EXTRA", overtime),
            ("BONOS", bonuses),
            ("COMISIONES", commissions),
            ("GRATIFICACION", gratification),
        ):
            if amount:
                lines.append(LineItemBuilder.create_earning_line(code, amount))

        # 3) Taxable cap; the clamped base feeds every deduction below
        taxable_base, cap_exceeded = self.apply_income_cap(total_taxable)
        if cap_exceeded:
            warnings.append(
                f"Taxable income {format_clp(total_taxable)} exceeds the cap of "
                f"{rules.income_limits.uf_limit} UF ({format_clp(taxable_base)})"
            )

        # 4) Family allowance
        family_allowance, family_bracket = self.family_allowance(
            employee.family_allowances, employee.base_salary
        )

        # 5) Non-taxable income
        food = peso(income.food_allowance)
        transport = peso(income.transport_allowance)
        total_non_taxable = food + transport + family_allowance

        for code, amount in (
            ("COLACION", food),
            ("MOVILIZACION", transport),
            ("ASIGNACION_FAMILIAR", family_allowance),
        ):
            if amount:
                lines.append(LineItemBuilder.create_earning_line(code, amount, taxable=False))

        # 6) Pension
        commission_percentage = self._commission_percentage(employee.afp_code, warnings)
        afp_amount = LineItemBuilder.percentage_of(taxable_base, rules.afp_percentage)
        afp_commission = LineItemBuilder.percentage_of(taxable_base, commission_percentage)
        sis_amount = LineItemBuilder.percentage_of(taxable_base, rules.sis_percentage)

        # 7) Health
        health_amount = LineItemBuilder.percentage_of(taxable_base, rules.health_percentage)

        # 8) Unemployment insurance
        unemployment_percentage = rules.unemployment_rate(employee.contract_type)
        unemployment_amount = LineItemBuilder.percentage_of(
            taxable_base, unemployment_percentage
        )

        previsional = (
            ("AFP", afp_amount, rules.afp_percentage),
            ("AFP_COMISION", afp_commission, commission_percentage),
            ("SIS", sis_amount, rules.sis_percentage),
            ("SALUD", health_amount, rules.health_percentage),
            ("SEGURO_CESANTIA", unemployment_amount, unemployment_percentage),
        )
        for code, amount, rate in previsional:
            if amount:
                lines.append(LineItemBuilder.create_previsional_line(code, amount, rate))
        total_previsional = sum((amount for _, amount, _ in previsional), Decimal("0"))

        # 9) Income tax
        tax = self.tax_calculator.calculate(taxable_base)
        if tax.amount:
            lines.append(
                LineItemBuilder.create_tax_line(tax.amount, explanation=f"Bracket {tax.bracket}")
            )

        # 10) Other deductions (no cap at this step)
        other_items = (
            ("PRESTAMO", peso(deductions.loan_deductions)),
            ("ANTICIPO", peso(deductions.advance_payments)),
            ("APV", peso(deductions.apv_amount)),
            ("OTROS_DESCUENTOS", peso(deductions.other_deductions)),
        )
        for code, amount in other_items:
            if amount:
                lines.append(LineItemBuilder.create_deduction_line(code, amount))
        total_other = sum((amount for _, amount in other_items), Decimal("0"))

        # 11) Totals
        total_gross = total_taxable + total_non_taxable
        total_deductions = total_previsional + tax.amount + total_other
        net_salary = total_gross - total_deductions

        # 12) Advisory deduction ceiling, net is not re-clamped
        ceiling_warning = self._check_deduction_limit(total_gross, total_deductions)
        if ceiling_warning:
            warnings.append(ceiling_warning)

        inputs_fingerprint = self._compute_inputs_fingerprint(
            employee, period, income, deductions
        )
        rules_fingerprint = self._compute_rules_fingerprint()
        calculation_id = self._generate_calculation_id(
            employee.id, period, inputs_fingerprint, rules_fingerprint
        )

        logger.debug(
            "Calculated liquidation %s for employee %s %04d-%02d: gross=%s net=%s",
            calculation_id,
            employee.id,
            period.year,
            period.month,
            total_gross,
            net_salary,
        )

        return LiquidationResult(
            employee=employee,
            period=period,
            base_salary=base_salary,
            overtime_amount=overtime,
            bonuses=bonuses,
            commissions=commissions,
            gratification=gratification,
            total_taxable_income=total_taxable,
            taxable_base=taxable_base,
            food_allowance=food,
            transport_allowance=transport,
            family_allowance=family_allowance,
            family_allowance_bracket=family_bracket,
            other_allowances=Decimal("0"),
            total_non_taxable_income=total_non_taxable,
            afp_percentage=rules.afp_percentage,
            afp_commission_percentage=commission_percentage,
            sis_percentage=rules.sis_percentage,
            afp_amount=afp_amount,
            afp_commission_amount=afp_commission,
            sis_amount=sis_amount,
            health_percentage=rules.health_percentage,
            health_amount=health_amount,
            unemployment_percentage=unemployment_percentage,
            unemployment_amount=unemployment_amount,
            total_previsional_deductions=total_previsional,
            income_tax_amount=tax.amount,
            income_tax_bracket=tax.bracket,
            total_other_deductions=total_other,
            total_gross_income=total_gross,
            total_deductions=total_deductions,
            net_salary=net_salary,
            calculation_date=calculated_at or datetime.now(timezone.utc),
            tope_imponible_exceeded=cap_exceeded,
            warnings=warnings,
            lines=lines,
            calculation_id=calculation_id,
            inputs_fingerprint=inputs_fingerprint,
            rules_fingerprint=rules_fingerprint,
        )

    @staticmethod
    def proportional_salary(base_salary: Decimal, days_worked: int) -> Decimal:
        """Scale the monthly salary to the days worked (30-day month).

        Days above 30 are not clamped; they pay the full salary.
        """
        if days_worked >= FULL_MONTH_DAYS:
            return base_salary
        # Multiply first so the only division is exact before rounding
        return LineItemBuilder.round_to_peso(base_salary * days_worked / FULL_MONTH_DAYS)

    def apply_income_cap(self, taxable_income: Decimal) -> tuple[Decimal, bool]:
        """Clamp taxable income to the cap. Returns (clamped, exceeded)."""
        cap = self.rules.taxable_income_cap
        if taxable_income > cap:
            return cap, True
        return taxable_income, False

    def family_allowance(
        self, dependents: int, base_salary: Decimal
    ) -> tuple[Decimal, str | None]:
        """Family allowance amount and tier for the unclamped base salary.

        Above the family allowance ceiling the amount is 0, with no warning.
        """
        if dependents <= 0:
            return Decimal("0"), None

        table = self.rules.family_allowances
        if base_salary <= table.tramo_a_limit:
            per_dependent, tier = table.tramo_a, "A"
        elif base_salary <= table.tramo_b_limit:
            per_dependent, tier = table.tramo_b, "B"
        elif base_salary <= self.rules.income_limits.family_allowance_limit:
            per_dependent, tier = table.tramo_c, "C"
        else:
            return Decimal("0"), None

        return LineItemBuilder.round_to_peso(per_dependent * dependents), tier

    def _commission_percentage(self, afp_code: str, warnings: list[str]) -> Decimal:
        fund = self.rules.find_pension_fund(afp_code)
        if fund is not None:
            return fund.commission_percentage

        if self.unknown_fund_policy is UnknownFundPolicy.ERROR:
            raise UnknownPensionFundError(
                afp_code, [f.code for f in self.rules.pension_funds]
            )

        default = self.rules.default_commission_percentage
        logger.warning(
            "Unknown pension fund code %r, using default commission %s%%",
            afp_code,
            default,
        )
        if self.unknown_fund_policy is UnknownFundPolicy.WARN:
            warnings.append(
                f"Unknown pension fund '{afp_code}': default commission of {default}% applied"
            )
        return default

    def _check_deduction_limit(
        self, total_gross: Decimal, total_deductions: Decimal
    ) -> str | None:
        limit = self.rules.max_deductions_percentage
        if total_gross <= 0:
            if total_deductions > 0:
                return (
                    f"Deductions of {format_clp(total_deductions)} with no gross income "
                    f"exceed the legal limit of {limit}%"
                )
            return None

        ratio = total_deductions / total_gross * 100
        if ratio > limit:
            return f"Deductions ({ratio:.1f}%) exceed the legal limit of {limit}%"
        return None

    def _compute_inputs_fingerprint(
        self,
        employee: EmployeeSnapshot,
        period: PayPeriod,
        income: AdditionalIncome,
        deductions: AdditionalDeductions,
    ) -> str:
        """Compute fingerprint of all inputs used in calculation."""
        data: dict[str, Any] = {
            "employee": asdict(employee),
            "period": asdict(period),
            "additional_income": asdict(income),
            "additional_deductions": asdict(deductions),
        }
        json_str = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    def _compute_rules_fingerprint(self) -> str:
        """Compute fingerprint of the rule set used in calculation."""
        json_str = json.dumps(self.rules.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    def _generate_calculation_id(
        self,
        employee_id: str,
        period: PayPeriod,
        inputs_fingerprint: str,
        rules_fingerprint: str,
    ) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "employee_id": str(employee_id),
            "period": f"{period.year:04d}-{period.month:02d}",
            "engine_version": self.engine_version,
            "inputs_fingerprint": inputs_fingerprint,
            "rules_fingerprint": rules_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])
