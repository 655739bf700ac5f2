"""Jurisdiction rules: every rate and limit the calculator applies.

Rules are an immutable value handed to the calculator per call, so a
company (or a past period) can carry its own rates without touching
module state. Percentages are stored as percentages, e.g. ``Decimal("10")``
for 10 %.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Mapping

from chile_payroll.calculators.types import ContractType


class RulesConfigurationError(ValueError):
    """Raised when a rule set is internally inconsistent."""


@dataclass(frozen=True)
class PensionFundConfig:
    """A pension fund administrator (AFP) and its commission."""

    code: str
    commission_percentage: Decimal
    name: str | None = None


@dataclass(frozen=True)
class FamilyAllowanceTable:
    """Per-dependent family allowance by base salary tier.

    Tier C ends at ``IncomeLimits.family_allowance_limit``.
    """

    tramo_a: Decimal = Decimal("13596")
    tramo_b: Decimal = Decimal("8397")
    tramo_c: Decimal = Decimal("2798")
    tramo_a_limit: Decimal = Decimal("500000")
    tramo_b_limit: Decimal = Decimal("750000")


@dataclass(frozen=True)
class IncomeLimits:
    """Statutory income limits."""

    uf_limit: Decimal = Decimal("83.4")  # tope imponible, in UF
    minimum_wage: Decimal = Decimal("500000")
    family_allowance_limit: Decimal = Decimal("1000000")


@dataclass(frozen=True)
class TaxBracket:
    """Bracket applied to the income in excess of the exempt threshold."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # Percentage
    flat_amount: Decimal = Decimal("0")  # Tax accrued below min_amount


DEFAULT_PENSION_FUNDS: tuple[PensionFundConfig, ...] = (
    PensionFundConfig("CAPITAL", Decimal("1.44"), "AFP Capital"),
    PensionFundConfig("CUPRUM", Decimal("1.48"), "AFP Cuprum"),
    PensionFundConfig("HABITAT", Decimal("1.27"), "AFP Hábitat"),
    PensionFundConfig("PLANVITAL", Decimal("1.16"), "AFP PlanVital"),
    PensionFundConfig("PROVIDA", Decimal("1.69"), "AFP ProVida"),
    PensionFundConfig("MODELO", Decimal("0.58"), "AFP Modelo"),
    PensionFundConfig("UNO", Decimal("0.69"), "AFP Uno"),
)

DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("0"), Decimal("150000"), Decimal("4")),
    TaxBracket(Decimal("150000"), Decimal("300000"), Decimal("8"), Decimal("6000")),
    TaxBracket(Decimal("300000"), None, Decimal("13.5"), Decimal("18000")),
)

DEFAULT_UNEMPLOYMENT_RATES: Mapping[ContractType, Decimal] = MappingProxyType(
    {
        ContractType.INDEFINITE: Decimal("0.6"),
        ContractType.FIXED_TERM: Decimal("3.0"),
        ContractType.PROJECT_BASED: Decimal("0"),
    }
)

DEFAULT_UF_VALUE = Decimal("37800")
DEFAULT_UTM_VALUE = Decimal("66391")


@dataclass(frozen=True)
class JurisdictionRules:
    """Immutable rule set for one calculation."""

    pension_funds: tuple[PensionFundConfig, ...] = DEFAULT_PENSION_FUNDS
    family_allowances: FamilyAllowanceTable = field(default_factory=FamilyAllowanceTable)
    income_limits: IncomeLimits = field(default_factory=IncomeLimits)
    uf_value: Decimal = DEFAULT_UF_VALUE
    utm_value: Decimal = DEFAULT_UTM_VALUE

    afp_percentage: Decimal = Decimal("10")
    sis_percentage: Decimal = Decimal("1.88")
    health_percentage: Decimal = Decimal("7")
    default_commission_percentage: Decimal = Decimal("0.58")
    unemployment_rates: Mapping[ContractType, Decimal] = field(
        default_factory=lambda: DEFAULT_UNEMPLOYMENT_RATES
    )
    max_deductions_percentage: Decimal = Decimal("45")

    tax_exempt_utm: Decimal = Decimal("13.5")
    tax_brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS

    def __post_init__(self) -> None:
        object.__setattr__(self, "pension_funds", tuple(self.pension_funds))
        object.__setattr__(self, "tax_brackets", tuple(self.tax_brackets))
        object.__setattr__(
            self, "unemployment_rates", MappingProxyType(dict(self.unemployment_rates))
        )
        self._check()

    def _check(self) -> None:
        rates = {
            "afp_percentage": self.afp_percentage,
            "sis_percentage": self.sis_percentage,
            "health_percentage": self.health_percentage,
            "default_commission_percentage": self.default_commission_percentage,
            "max_deductions_percentage": self.max_deductions_percentage,
        }
        for name, value in rates.items():
            if value < 0:
                raise RulesConfigurationError(f"{name} must be non-negative, got {value}")

        for fund in self.pension_funds:
            if fund.commission_percentage < 0:
                raise RulesConfigurationError(
                    f"Commission for {fund.code} must be non-negative"
                )

        missing = [ct.value for ct in ContractType if ct not in self.unemployment_rates]
        if missing:
            raise RulesConfigurationError(
                f"Missing unemployment rates for contract types: {missing}"
            )

        table = self.family_allowances
        if not (
            table.tramo_a_limit < table.tramo_b_limit
            <= self.income_limits.family_allowance_limit
        ):
            raise RulesConfigurationError(
                "Family allowance tier limits must be ascending and end at the "
                "family allowance ceiling"
            )

        if self.uf_value <= 0 or self.utm_value <= 0:
            raise RulesConfigurationError("UF and UTM values must be positive")

        if not self.tax_brackets:
            raise RulesConfigurationError("At least one tax bracket is required")
        previous_max: Decimal | None = Decimal("0")
        for bracket in self.tax_brackets:
            if previous_max is None or bracket.min_amount != previous_max:
                raise RulesConfigurationError(
                    "Tax brackets must be contiguous and start at 0"
                )
            previous_max = bracket.max_amount
        if previous_max is not None:
            raise RulesConfigurationError("The last tax bracket must be open-ended")

    @property
    def taxable_income_cap(self) -> Decimal:
        """Tope imponible in pesos (uf_limit x UF)."""
        cap = self.income_limits.uf_limit * self.uf_value
        return cap.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    @property
    def tax_exempt_threshold(self) -> Decimal:
        """Monthly income exempt from income tax (tax_exempt_utm x UTM)."""
        threshold = self.tax_exempt_utm * self.utm_value
        return threshold.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    def find_pension_fund(self, code: str) -> PensionFundConfig | None:
        """Look up a fund by its exact code; ``"habitat"`` does not match ``HABITAT``."""
        return next((f for f in self.pension_funds if f.code == code), None)

    def unemployment_rate(self, contract_type: ContractType) -> Decimal:
        return self.unemployment_rates[ContractType(contract_type)]

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing and display."""
        table = self.family_allowances
        limits = self.income_limits
        return {
            "pension_funds": [
                {
                    "code": f.code,
                    "name": f.name,
                    "commission_percentage": str(f.commission_percentage),
                }
                for f in self.pension_funds
            ],
            "family_allowances": {
                "tramo_a": str(table.tramo_a),
                "tramo_b": str(table.tramo_b),
                "tramo_c": str(table.tramo_c),
                "tramo_a_limit": str(table.tramo_a_limit),
                "tramo_b_limit": str(table.tramo_b_limit),
            },
            "income_limits": {
                "uf_limit": str(limits.uf_limit),
                "minimum_wage": str(limits.minimum_wage),
                "family_allowance_limit": str(limits.family_allowance_limit),
            },
            "uf_value": str(self.uf_value),
            "utm_value": str(self.utm_value),
            "afp_percentage": str(self.afp_percentage),
            "sis_percentage": str(self.sis_percentage),
            "health_percentage": str(self.health_percentage),
            "default_commission_percentage": str(self.default_commission_percentage),
            "unemployment_rates": {
                ct.value: str(rate) for ct, rate in sorted(
                    self.unemployment_rates.items(), key=lambda item: item[0].value
                )
            },
            "max_deductions_percentage": str(self.max_deductions_percentage),
            "tax_exempt_utm": str(self.tax_exempt_utm),
            "tax_brackets": [
                {
                    "min": str(b.min_amount),
                    "max": str(b.max_amount) if b.max_amount is not None else None,
                    "rate": str(b.rate),
                    "flat": str(b.flat_amount),
                }
                for b in self.tax_brackets
            ],
        }


def default_rules(
    uf_value: Decimal | None = None,
    utm_value: Decimal | None = None,
) -> JurisdictionRules:
    """Build the default 2025 rule set with optional indicator overrides."""
    return JurisdictionRules(
        uf_value=uf_value if uf_value is not None else DEFAULT_UF_VALUE,
        utm_value=utm_value if utm_value is not None else DEFAULT_UTM_VALUE,
    )
