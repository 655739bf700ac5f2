"""Payroll liquidation engine."""

from chile_payroll.calculators.engine import (
    PayrollCalculator,
    UnknownFundPolicy,
    UnknownPensionFundError,
)
from chile_payroll.calculators.line_builder import LineItemBuilder
from chile_payroll.calculators.rules import JurisdictionRules, default_rules
from chile_payroll.calculators.tax_calculator import IncomeTaxCalculator

__all__ = [
    "PayrollCalculator",
    "UnknownFundPolicy",
    "UnknownPensionFundError",
    "LineItemBuilder",
    "JurisdictionRules",
    "default_rules",
    "IncomeTaxCalculator",
]
