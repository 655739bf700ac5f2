"""Property-based tests for liquidation invariants.

These tests use hypothesis to generate random employees, periods and
extra income/deductions, and verify that the totals and line items always
agree, regardless of the combination of inputs.
"""

from __future__ import annotations

from decimal import Decimal

from hypothesis import given, settings, strategies as st

from chile_payroll.calculators.engine import PayrollCalculator
from chile_payroll.calculators.line_builder import LineItemBuilder
from chile_payroll.calculators.rules import default_rules
from chile_payroll.calculators.tax_calculator import IncomeTaxCalculator
from chile_payroll.calculators.types import (
    AdditionalDeductions,
    AdditionalIncome,
    ContractType,
    EmployeeSnapshot,
    PayPeriod,
)

# Shared across examples; function-scoped fixtures do not mix with @given
RULES = default_rules()
CALCULATOR = PayrollCalculator(RULES, engine_version="test")
TAX = IncomeTaxCalculator(RULES)

pesos = st.integers(min_value=0, max_value=2_000_000).map(Decimal)
salaries = st.integers(min_value=1, max_value=12_000_000).map(Decimal)


@st.composite
def liquidation_inputs(draw):
    employee = EmployeeSnapshot(
        id="emp-prop",
        rut="11.111.111-1",
        first_name="Test",
        last_name="Employee",
        base_salary=draw(salaries),
        contract_type=draw(st.sampled_from(list(ContractType))),
        afp_code=draw(st.sampled_from(["CAPITAL", "HABITAT", "MODELO", "UNKNOWN"])),
        family_allowances=draw(st.integers(min_value=0, max_value=6)),
    )
    period = PayPeriod(
        year=2025,
        month=draw(st.integers(min_value=1, max_value=12)),
        days_worked=draw(st.integers(min_value=0, max_value=31)),
    )
    income = AdditionalIncome(
        bonuses=draw(pesos),
        commissions=draw(pesos),
        gratification=draw(pesos),
        overtime_amount=draw(pesos),
        food_allowance=draw(pesos),
        transport_allowance=draw(pesos),
    )
    deductions = AdditionalDeductions(
        loan_deductions=draw(pesos),
        advance_payments=draw(pesos),
        apv_amount=draw(pesos),
        other_deductions=draw(pesos),
    )
    return employee, period, income, deductions


class TestLiquidationInvariants:
    """Invariants that hold for every liquidation."""

    @given(liquidation_inputs())
    @settings(max_examples=200)
    def test_net_equals_gross_minus_deductions(self, inputs):
        result = CALCULATOR.calculate(*inputs)

        assert result.total_gross_income == (
            result.total_taxable_income + result.total_non_taxable_income
        )
        assert result.net_salary == result.total_gross_income - result.total_deductions

    @given(liquidation_inputs())
    @settings(max_examples=200)
    def test_lines_reconcile_with_totals(self, inputs):
        result = CALCULATOR.calculate(*inputs)

        assert LineItemBuilder.calculate_gross_from_lines(result.lines) == result.total_gross_income
        assert LineItemBuilder.calculate_net_from_lines(result.lines) == result.net_salary
        assert LineItemBuilder.validate_line_signs(result.lines) == []

    @given(liquidation_inputs())
    @settings(max_examples=200)
    def test_amounts_are_whole_pesos(self, inputs):
        result = CALCULATOR.calculate(*inputs)

        for amount in (
            result.base_salary,
            result.afp_amount,
            result.afp_commission_amount,
            result.sis_amount,
            result.health_amount,
            result.unemployment_amount,
            result.income_tax_amount,
            result.net_salary,
        ):
            assert amount == amount.to_integral_value()

    @given(liquidation_inputs())
    @settings(max_examples=200)
    def test_taxable_base_never_exceeds_cap(self, inputs):
        result = CALCULATOR.calculate(*inputs)

        assert result.taxable_base <= RULES.taxable_income_cap
        assert result.taxable_base <= result.total_taxable_income
        assert result.tope_imponible_exceeded == (
            result.total_taxable_income > RULES.taxable_income_cap
        )

    @given(liquidation_inputs())
    @settings(max_examples=100)
    def test_calculation_is_deterministic(self, inputs):
        first = CALCULATOR.calculate(*inputs)
        second = CALCULATOR.calculate(*inputs)

        assert first.calculation_id == second.calculation_id
        assert first.net_salary == second.net_salary


class TestComponentProperties:
    """Monotonicity of the individual components."""

    @given(salaries, salaries)
    def test_income_tax_is_monotonic(self, a, b):
        low, high = sorted((a, b))
        assert TAX.calculate(low).amount <= TAX.calculate(high).amount

    @given(salaries, st.integers(min_value=0, max_value=31))
    def test_proportional_salary_bounded_by_base(self, base, days):
        paid = PayrollCalculator.proportional_salary(base, days)
        assert Decimal("0") <= paid <= base

    @given(
        st.integers(min_value=1, max_value=12_000_000),
        st.integers(min_value=0, max_value=29),
    )
    def test_proportional_salary_matches_exact_half_up(self, base, days):
        """Integer half-up rounding of base * days / 30."""
        expected = (2 * base * days + 30) // 60
        assert PayrollCalculator.proportional_salary(Decimal(base), days) == Decimal(expected)

    @given(salaries, salaries, st.integers(min_value=1, max_value=6))
    def test_family_allowance_does_not_grow_with_salary(self, a, b, dependents):
        low, high = sorted((a, b))
        low_amount, _ = CALCULATOR.family_allowance(dependents, low)
        high_amount, _ = CALCULATOR.family_allowance(dependents, high)
        assert high_amount <= low_amount
