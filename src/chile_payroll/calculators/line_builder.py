"""Line item builder and whole-peso rounding."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

from chile_payroll.calculators.types import LineCandidate, LineType


class LineItemBuilder:
    """Builds liquidation lines.

    Sign conventions (non-negotiable):
    - TAXABLE_EARNING: positive
    - NON_TAXABLE_EARNING: positive
    - PREVISIONAL (employee contribution): negative
    - TAX (employee): negative
    - DEDUCTION: negative

    Rounding:
    - CLP has no minor unit; every line is rounded to whole pesos
      where it is computed, never only at the end
    - Half rounds up, matching the amounts printed on reference slips
    """

    PESO = Decimal("1")

    @staticmethod
    def round_to_peso(amount: Decimal) -> Decimal:
        """Round amount to whole pesos (half up)."""
        return amount.quantize(LineItemBuilder.PESO, rounding=ROUND_HALF_UP)

    @staticmethod
    def ceil_to_peso(amount: Decimal) -> Decimal:
        """Round amount up to the next whole peso."""
        return amount.quantize(LineItemBuilder.PESO, rounding=ROUND_CEILING)

    @staticmethod
    def percentage_of(base: Decimal, percentage: Decimal) -> Decimal:
        """Apply a percentage to a base and round to whole pesos."""
        return LineItemBuilder.round_to_peso(base * percentage / 100)

    @staticmethod
    def create_earning_line(
        code: str,
        amount: Decimal,
        taxable: bool = True,
        explanation: str | None = None,
    ) -> LineCandidate:
        """Create an earning line item (positive amount)."""
        return LineCandidate(
            line_type=LineType.TAXABLE_EARNING if taxable else LineType.NON_TAXABLE_EARNING,
            code=code,
            amount=LineItemBuilder.round_to_peso(abs(amount)),  # Ensure positive
            explanation=explanation,
        )

    @staticmethod
    def create_previsional_line(
        code: str,
        amount: Decimal,
        rate: Decimal,
        explanation: str | None = None,
    ) -> LineCandidate:
        """Create a social security contribution line (negative amount)."""
        return LineCandidate(
            line_type=LineType.PREVISIONAL,
            code=code,
            amount=-LineItemBuilder.round_to_peso(abs(amount)),  # Ensure negative
            rate=rate,
            explanation=explanation,
        )

    @staticmethod
    def create_tax_line(
        amount: Decimal,
        explanation: str | None = None,
    ) -> LineCandidate:
        """Create an income tax line item (negative amount)."""
        return LineCandidate(
            line_type=LineType.TAX,
            code="IMPUESTO_UNICO",
            amount=-LineItemBuilder.round_to_peso(abs(amount)),
            explanation=explanation,
        )

    @staticmethod
    def create_deduction_line(
        code: str,
        amount: Decimal,
        explanation: str | None = None,
    ) -> LineCandidate:
        """Create an other-deduction line item (negative amount)."""
        return LineCandidate(
            line_type=LineType.DEDUCTION,
            code=code,
            amount=-LineItemBuilder.round_to_peso(abs(amount)),
            explanation=explanation,
        )

    @staticmethod
    def calculate_gross_from_lines(lines: list[LineCandidate]) -> Decimal:
        """Calculate gross income from line items.

        GROSS = Σ(TAXABLE_EARNING) + Σ(NON_TAXABLE_EARNING)
        """
        gross = Decimal("0")
        for line in lines:
            if line.line_type in (LineType.TAXABLE_EARNING, LineType.NON_TAXABLE_EARNING):
                gross += line.amount
        return gross

    @staticmethod
    def calculate_net_from_lines(lines: list[LineCandidate]) -> Decimal:
        """Calculate net salary from line items.

        NET = Σ(all lines), deductions being negative.
        """
        return sum((line.amount for line in lines), Decimal("0"))

    @staticmethod
    def validate_line_signs(lines: list[LineCandidate]) -> list[str]:
        """Validate that all line items have correct signs.

        Returns list of error messages (empty if all valid).
        """
        errors: list[str] = []

        for i, line in enumerate(lines):
            if line.line_type in (LineType.TAXABLE_EARNING, LineType.NON_TAXABLE_EARNING):
                if line.amount < 0:
                    errors.append(
                        f"Line {i} ({line.line_type.value}) has negative amount {line.amount}, expected positive"
                    )
            elif line.amount > 0:
                errors.append(
                    f"Line {i} ({line.line_type.value}) has positive amount {line.amount}, expected negative"
                )

        return errors

    @staticmethod
    def sum_by_type(lines: list[LineCandidate]) -> dict[LineType, Decimal]:
        """Sum line amounts by type."""
        totals: dict[LineType, Decimal] = {lt: Decimal("0") for lt in LineType}
        for line in lines:
            totals[line.line_type] += line.amount
        return totals
