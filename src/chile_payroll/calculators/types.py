"""Type definitions for the liquidation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ZERO = Decimal("0")


class ContractType(str, Enum):
    """Employment contract types (values are the persisted codes)."""

    INDEFINITE = "indefinido"
    FIXED_TERM = "plazo_fijo"
    PROJECT_BASED = "obra_faena"


class LineType(str, Enum):
    """Liquidation line item types."""

    TAXABLE_EARNING = "TAXABLE_EARNING"
    NON_TAXABLE_EARNING = "NON_TAXABLE_EARNING"
    PREVISIONAL = "PREVISIONAL"
    TAX = "TAX"
    DEDUCTION = "DEDUCTION"


@dataclass(frozen=True)
class EmployeeSnapshot:
    """Employee data as of the calculation.

    Identity fields label the result only; they never affect amounts.
    """

    id: str
    rut: str
    first_name: str
    last_name: str
    base_salary: Decimal
    contract_type: ContractType
    afp_code: str
    health_institution_code: str = "FONASA"
    family_allowances: int = 0

    def __post_init__(self) -> None:
        # Accept persisted codes such as "plazo_fijo"
        object.__setattr__(self, "contract_type", ContractType(self.contract_type))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class PayPeriod:
    """Calendar period covered by a liquidation."""

    year: int
    month: int
    days_worked: int = 30
    worked_hours: Decimal = ZERO  # informational
    overtime_hours: Decimal = ZERO  # informational, paid via overtime_amount


@dataclass(frozen=True)
class AdditionalIncome:
    """Extra income for the period (haberes)."""

    # Taxable (imponibles)
    bonuses: Decimal = ZERO
    commissions: Decimal = ZERO
    gratification: Decimal = ZERO
    overtime_amount: Decimal = ZERO

    # Non-taxable (no imponibles)
    food_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO


@dataclass(frozen=True)
class AdditionalDeductions:
    """Voluntary or agreed deductions (otros descuentos)."""

    loan_deductions: Decimal = ZERO
    advance_payments: Decimal = ZERO
    apv_amount: Decimal = ZERO
    other_deductions: Decimal = ZERO


@dataclass
class LineCandidate:
    """An itemized line of a liquidation."""

    line_type: LineType
    code: str
    amount: Decimal  # Signed per conventions
    rate: Decimal | None = None  # Percentage applied, when rate-based
    explanation: str | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "line_type": self.line_type.value,
            "code": self.code,
            "rate": str(self.rate) if self.rate is not None else None,
            "amount": str(self.amount),
        }


@dataclass
class LiquidationResult:
    """Complete salary settlement for one employee and period."""

    employee: EmployeeSnapshot
    period: PayPeriod

    # Haberes imponibles
    base_salary: Decimal  # proportional to days worked
    overtime_amount: Decimal
    bonuses: Decimal
    commissions: Decimal
    gratification: Decimal
    total_taxable_income: Decimal
    taxable_base: Decimal  # total_taxable_income clamped to the cap

    # Haberes no imponibles
    food_allowance: Decimal
    transport_allowance: Decimal
    family_allowance: Decimal
    family_allowance_bracket: str | None
    other_allowances: Decimal
    total_non_taxable_income: Decimal

    # Descuentos previsionales
    afp_percentage: Decimal
    afp_commission_percentage: Decimal
    sis_percentage: Decimal
    afp_amount: Decimal
    afp_commission_amount: Decimal
    sis_amount: Decimal
    health_percentage: Decimal
    health_amount: Decimal
    unemployment_percentage: Decimal
    unemployment_amount: Decimal
    total_previsional_deductions: Decimal

    # Impuesto único
    income_tax_amount: Decimal
    income_tax_bracket: int

    total_other_deductions: Decimal

    # Totales
    total_gross_income: Decimal
    total_deductions: Decimal
    net_salary: Decimal

    # Metadata
    calculation_date: datetime
    tope_imponible_exceeded: bool
    warnings: list[str] = field(default_factory=list)
    lines: list[LineCandidate] = field(default_factory=list)
    calculation_id: UUID | None = None
    inputs_fingerprint: str = ""
    rules_fingerprint: str = ""

    @property
    def deduction_ratio(self) -> Decimal | None:
        """Total deductions as a percentage of gross income."""
        if self.total_gross_income <= 0:
            return None
        return self.total_deductions / self.total_gross_income * 100

    def to_dict(self) -> dict[str, Any]:
        """Render a JSON-ready mapping (amounts as whole-peso ints)."""
        amounts = (
            "base_salary",
            "overtime_amount",
            "bonuses",
            "commissions",
            "gratification",
            "total_taxable_income",
            "taxable_base",
            "food_allowance",
            "transport_allowance",
            "family_allowance",
            "other_allowances",
            "total_non_taxable_income",
            "afp_amount",
            "afp_commission_amount",
            "sis_amount",
            "health_amount",
            "unemployment_amount",
            "total_previsional_deductions",
            "income_tax_amount",
            "total_other_deductions",
            "total_gross_income",
            "total_deductions",
            "net_salary",
        )
        percentages = (
            "afp_percentage",
            "afp_commission_percentage",
            "sis_percentage",
            "health_percentage",
            "unemployment_percentage",
        )

        data: dict[str, Any] = {
            "employee": {
                "id": self.employee.id,
                "rut": self.employee.rut,
                "first_name": self.employee.first_name,
                "last_name": self.employee.last_name,
                "base_salary": int(self.employee.base_salary),
                "contract_type": self.employee.contract_type.value,
                "afp_code": self.employee.afp_code,
                "health_institution_code": self.employee.health_institution_code,
                "family_allowances": self.employee.family_allowances,
            },
            "period": {
                "year": self.period.year,
                "month": self.period.month,
                "days_worked": self.period.days_worked,
                "worked_hours": str(self.period.worked_hours),
                "overtime_hours": str(self.period.overtime_hours),
            },
        }
        data.update({name: int(getattr(self, name)) for name in amounts})
        data.update({name: str(getattr(self, name)) for name in percentages})
        data.update(
            {
                "family_allowance_bracket": self.family_allowance_bracket,
                "income_tax_bracket": self.income_tax_bracket,
                "calculation_date": self.calculation_date.isoformat(),
                "tope_imponible_exceeded": self.tope_imponible_exceeded,
                "warnings": list(self.warnings),
                "lines": [line.to_canonical_dict() for line in self.lines],
                "calculation_id": str(self.calculation_id) if self.calculation_id else None,
                "inputs_fingerprint": self.inputs_fingerprint,
                "rules_fingerprint": self.rules_fingerprint,
            }
        )
        return data
