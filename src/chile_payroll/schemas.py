"""Pydantic schemas for liquidation request and payroll settings payloads."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from chile_payroll.calculators.rules import (
    DEFAULT_PENSION_FUNDS,
    FamilyAllowanceTable,
    IncomeLimits,
    JurisdictionRules,
    PensionFundConfig,
)
from chile_payroll.calculators.types import (
    AdditionalDeductions,
    AdditionalIncome,
    ContractType,
    EmployeeSnapshot,
    PayPeriod,
)


# ============================================================================
# Liquidation request
# ============================================================================


class EmployeePayload(BaseModel):
    """Employee data as stored with the active contract and payroll config."""

    id: str
    rut: str
    first_name: str
    last_name: str
    base_salary: Decimal
    contract_type: ContractType = ContractType.INDEFINITE
    afp_code: str = "HABITAT"
    health_institution_code: str = "FONASA"
    family_allowances: int = 0

    def to_snapshot(self) -> EmployeeSnapshot:
        return EmployeeSnapshot(
            id=self.id,
            rut=self.rut,
            first_name=self.first_name,
            last_name=self.last_name,
            base_salary=self.base_salary,
            contract_type=self.contract_type,
            afp_code=self.afp_code,
            health_institution_code=self.health_institution_code,
            family_allowances=self.family_allowances,
        )


class AdditionalIncomePayload(BaseModel):
    bonuses: Decimal = Decimal("0")
    commissions: Decimal = Decimal("0")
    gratification: Decimal = Decimal("0")
    overtime_amount: Decimal = Decimal("0")
    food_allowance: Decimal = Decimal("0")
    transport_allowance: Decimal = Decimal("0")


class AdditionalDeductionsPayload(BaseModel):
    loan_deductions: Decimal = Decimal("0")
    advance_payments: Decimal = Decimal("0")
    apv_amount: Decimal = Decimal("0")
    other_deductions: Decimal = Decimal("0")


class LiquidationRequest(BaseModel):
    """Schema for a liquidation calculation request."""

    employee: EmployeePayload
    period_year: int
    period_month: int
    days_worked: int = 30
    worked_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    additional_income: AdditionalIncomePayload = Field(default_factory=AdditionalIncomePayload)
    additional_deductions: AdditionalDeductionsPayload = Field(
        default_factory=AdditionalDeductionsPayload
    )

    def to_period(self) -> PayPeriod:
        return PayPeriod(
            year=self.period_year,
            month=self.period_month,
            days_worked=self.days_worked,
            worked_hours=self.worked_hours,
            overtime_hours=self.overtime_hours,
        )

    def to_income(self) -> AdditionalIncome:
        return AdditionalIncome(**self.additional_income.model_dump())

    def to_deductions(self) -> AdditionalDeductions:
        return AdditionalDeductions(**self.additional_deductions.model_dump())


# ============================================================================
# Company payroll settings
# ============================================================================


class PensionFundPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    name: str | None = None
    commission_percentage: Decimal = Field(ge=0)
    active: bool = True


class FamilyAllowancesPayload(BaseModel):
    tramo_a: Decimal = Field(default=Decimal("13596"), ge=0)
    tramo_b: Decimal = Field(default=Decimal("8397"), ge=0)
    tramo_c: Decimal = Field(default=Decimal("2798"), ge=0)
    tramo_a_limit: Decimal = Decimal("500000")
    tramo_b_limit: Decimal = Decimal("750000")


class IncomeLimitsPayload(BaseModel):
    uf_limit: Decimal = Field(default=Decimal("83.4"), gt=0)
    minimum_wage: Decimal = Field(default=Decimal("500000"), gt=0)
    family_allowance_limit: Decimal = Field(default=Decimal("1000000"), gt=0)


class ContributionsPayload(BaseModel):
    unemployment_insurance_indefinite: Decimal = Field(default=Decimal("0.6"), ge=0)
    unemployment_insurance_fixed: Decimal = Field(default=Decimal("3.0"), ge=0)
    unemployment_insurance_project: Decimal = Field(default=Decimal("0"), ge=0)
    social_security_percentage: Decimal = Field(default=Decimal("10.0"), ge=0)


class PayrollSettingsPayload(BaseModel):
    """Company payroll settings as stored in ``payroll_settings.settings``.

    Unknown sections (health plans, company info) are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    afp_configs: list[PensionFundPayload] | None = None
    family_allowances: FamilyAllowancesPayload = Field(default_factory=FamilyAllowancesPayload)
    income_limits: IncomeLimitsPayload = Field(default_factory=IncomeLimitsPayload)
    contributions: ContributionsPayload = Field(default_factory=ContributionsPayload)

    def to_rules(
        self,
        uf_value: Decimal | None = None,
        utm_value: Decimal | None = None,
    ) -> JurisdictionRules:
        """Build the rule set; inactive funds are left out, codes are kept as stored."""
        if self.afp_configs is None:
            funds = DEFAULT_PENSION_FUNDS
        else:
            funds = tuple(
                PensionFundConfig(
                    code=afp.code,
                    commission_percentage=afp.commission_percentage,
                    name=afp.name,
                )
                for afp in self.afp_configs
                if afp.active
            )

        fa = self.family_allowances
        limits = self.income_limits
        contributions = self.contributions

        extra: dict[str, Decimal] = {}
        if uf_value is not None:
            extra["uf_value"] = uf_value
        if utm_value is not None:
            extra["utm_value"] = utm_value

        return JurisdictionRules(
            pension_funds=funds,
            family_allowances=FamilyAllowanceTable(
                tramo_a=fa.tramo_a,
                tramo_b=fa.tramo_b,
                tramo_c=fa.tramo_c,
                tramo_a_limit=fa.tramo_a_limit,
                tramo_b_limit=fa.tramo_b_limit,
            ),
            income_limits=IncomeLimits(
                uf_limit=limits.uf_limit,
                minimum_wage=limits.minimum_wage,
                family_allowance_limit=limits.family_allowance_limit,
            ),
            afp_percentage=contributions.social_security_percentage,
            unemployment_rates={
                ContractType.INDEFINITE: contributions.unemployment_insurance_indefinite,
                ContractType.FIXED_TERM: contributions.unemployment_insurance_fixed,
                ContractType.PROJECT_BASED: contributions.unemployment_insurance_project,
            },
            **extra,
        )
