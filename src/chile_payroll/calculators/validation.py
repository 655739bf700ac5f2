"""Input checks callers run before invoking the calculator.

The calculator trusts its inputs; these checks are what a caller (the
CLI, a live preview, a request handler) applies to reject impossible
values and to surface advisories before calculating.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal

from chile_payroll.calculators.types import (
    AdditionalDeductions,
    AdditionalIncome,
    EmployeeSnapshot,
    PayPeriod,
)
from chile_payroll.formatting import format_clp
from chile_payroll.indicators import gratification_cap

HIGH_SALARY_THRESHOLD = Decimal("3000000")
MAX_DAYS_IN_MONTH = 31


class LiquidationInputError(ValueError):
    """Raised when liquidation inputs fail validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid liquidation input: " + "; ".join(errors))


@dataclass
class ValidationReport:
    """Errors block a calculation; warnings are advisory."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def raise_for_errors(self) -> None:
        if self.errors:
            raise LiquidationInputError(self.errors)


def validate_liquidation_input(
    employee: EmployeeSnapshot | None,
    period: PayPeriod,
    additional_income: AdditionalIncome | None = None,
    additional_deductions: AdditionalDeductions | None = None,
    min_year: int = 2020,
    max_year: int = 2030,
    minimum_wage: Decimal | None = None,
) -> ValidationReport:
    """Check liquidation inputs and collect every problem found."""
    report = ValidationReport()
    income = additional_income or AdditionalIncome()
    deductions = additional_deductions or AdditionalDeductions()

    if employee is None:
        report.errors.append("An employee is required")
    elif employee.base_salary <= 0:
        report.errors.append("Base salary must be positive")

    if period.days_worked <= 0:
        report.errors.append("Days worked must be greater than 0")
    if period.days_worked > MAX_DAYS_IN_MONTH:
        report.errors.append(f"Days worked cannot exceed {MAX_DAYS_IN_MONTH}")
    if not 1 <= period.month <= 12:
        report.errors.append("Month must be between 1 and 12")
    if not min_year <= period.year <= max_year:
        report.errors.append(f"Year must be between {min_year} and {max_year}")

    for name, value in {**asdict(income), **asdict(deductions)}.items():
        if value < 0:
            report.errors.append(f"{name} cannot be negative")

    if employee is not None and employee.family_allowances < 0:
        report.errors.append("family_allowances cannot be negative")

    # Advisories
    if 0 < period.days_worked < 30:
        report.warnings.append(f"Partial period: only {period.days_worked} days worked")

    if employee is not None and employee.base_salary > HIGH_SALARY_THRESHOLD:
        report.warnings.append("High salary: check the taxable income cap")

    if minimum_wage is not None:
        cap = gratification_cap(minimum_wage)
        if income.gratification > cap:
            report.warnings.append(
                f"Gratification {format_clp(income.gratification)} exceeds the "
                f"legal monthly cap of {format_clp(cap)}"
            )

    return report
