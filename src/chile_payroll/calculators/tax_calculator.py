"""Income tax (impuesto único de segunda categoría) over configured brackets."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from chile_payroll.calculators.line_builder import LineItemBuilder
from chile_payroll.calculators.rules import JurisdictionRules, TaxBracket


@dataclass(frozen=True)
class IncomeTaxResult:
    """Income tax for one taxable base."""

    amount: Decimal
    bracket: int  # 1-based bracket index, 0 when exempt
    exempt_threshold: Decimal
    taxable_excess: Decimal


class IncomeTaxCalculator:
    """Calculates monthly income tax from the clamped taxable base.

    Income up to ``tax_exempt_utm`` UTM is exempt. The excess over that
    threshold is taxed with the bracket that contains it:

        tax = flat_amount + (excess - min_amount) * rate

    ``flat_amount`` holds the tax accrued by the lower brackets, so the
    schedule is continuous at every boundary. The amount is rounded up to
    the whole peso, so any income above the threshold pays at least $1.
    """

    def __init__(self, rules: JurisdictionRules):
        self.rules = rules

    def calculate(self, taxable_base: Decimal) -> IncomeTaxResult:
        threshold = self.rules.tax_exempt_threshold

        if taxable_base <= threshold:
            return IncomeTaxResult(
                amount=Decimal("0"),
                bracket=0,
                exempt_threshold=threshold,
                taxable_excess=Decimal("0"),
            )

        excess = taxable_base - threshold
        index, bracket = self._find_bracket(excess)
        tax = bracket.flat_amount + (excess - bracket.min_amount) * bracket.rate / 100

        return IncomeTaxResult(
            amount=LineItemBuilder.ceil_to_peso(tax),
            bracket=index,
            exempt_threshold=threshold,
            taxable_excess=excess,
        )

    def _find_bracket(self, excess: Decimal) -> tuple[int, TaxBracket]:
        """Return the 1-based index and bracket containing ``excess``.

        Upper bounds are inclusive: an excess of exactly 150,000 stays in
        the first bracket.
        """
        brackets = self.rules.tax_brackets
        for i, bracket in enumerate(brackets, start=1):
            if bracket.max_amount is None or excess <= bracket.max_amount:
                return i, bracket
        # Rules guarantee an open-ended last bracket
        return len(brackets), brackets[-1]
