"""Pytest fixtures for payroll calculator tests."""

from __future__ import annotations

import copy
from decimal import Decimal
from typing import Any, Callable

import pytest

from chile_payroll.calculators.engine import PayrollCalculator
from chile_payroll.calculators.rules import JurisdictionRules, PensionFundConfig, default_rules
from chile_payroll.calculators.types import ContractType, EmployeeSnapshot, PayPeriod
from chile_payroll.config import Settings

TEST_ENGINE_VERSION = "test"

# Company settings payload in the shape stored by the web app
COMPANY_SETTINGS: dict[str, Any] = {
    "afp_configs": [
        {"id": "afp-capital", "name": "AFP Capital", "code": "CAPITAL", "commission_percentage": 1.44, "sis_percentage": 1.15, "active": True},
        {"id": "afp-habitat", "name": "AFP Hábitat", "code": "HABITAT", "commission_percentage": 1.27, "sis_percentage": 1.15, "active": True},
        {"id": "afp-modelo", "name": "AFP Modelo", "code": "MODELO", "commission_percentage": 0.58, "sis_percentage": 1.15, "active": True},
        {"id": "afp-uno", "name": "AFP Uno", "code": "UNO", "commission_percentage": 0.69, "sis_percentage": 1.15, "active": False},
    ],
    "health_configs": [
        {"id": "fonasa", "name": "FONASA", "code": "FONASA", "plan_percentage": 7.0, "active": True},
    ],
    "income_limits": {
        "uf_limit": 83.4,
        "minimum_wage": 500000,
        "family_allowance_limit": 1000000,
    },
    "family_allowances": {
        "tramo_a": 13596,
        "tramo_b": 8397,
        "tramo_c": 2798,
    },
    "contributions": {
        "unemployment_insurance_fixed": 3.0,
        "unemployment_insurance_indefinite": 0.6,
        "social_security_percentage": 10.0,
    },
    "company_info": {"mutual_code": "ACHS", "caja_compensacion_code": ""},
}


@pytest.fixture
def rules() -> JurisdictionRules:
    """Default rules (UF 37,800 / UTM 66,391)."""
    return default_rules()


@pytest.fixture
def one_percent_rules() -> JurisdictionRules:
    """Rules with a single AFP charging a 1.0% commission."""
    return JurisdictionRules(
        pension_funds=(PensionFundConfig("TEST", Decimal("1.0"), "AFP Test"),),
    )


@pytest.fixture
def calculator(rules: JurisdictionRules) -> PayrollCalculator:
    return PayrollCalculator(rules, engine_version=TEST_ENGINE_VERSION)


@pytest.fixture
def make_employee() -> Callable[..., EmployeeSnapshot]:
    """Factory for employee snapshots with sensible defaults."""

    def _make(**overrides: Any) -> EmployeeSnapshot:
        data: dict[str, Any] = {
            "id": "emp-001",
            "rut": "12.345.678-5",
            "first_name": "Ana",
            "last_name": "Pérez",
            "base_salary": Decimal("1000000"),
            "contract_type": ContractType.INDEFINITE,
            "afp_code": "HABITAT",
            "health_institution_code": "FONASA",
            "family_allowances": 0,
        }
        data.update(overrides)
        return EmployeeSnapshot(**data)

    return _make


@pytest.fixture
def full_month() -> PayPeriod:
    return PayPeriod(year=2025, month=8, days_worked=30)


@pytest.fixture
def cli_settings() -> Settings:
    return Settings(
        engine_version=TEST_ENGINE_VERSION,
        uf_value=Decimal("37800"),
        utm_value=Decimal("66391"),
        minimum_wage=Decimal("529000"),
        unknown_fund_policy="default",
        settings_file=None,
        min_year=2020,
        max_year=2030,
        log_level="WARNING",
    )


@pytest.fixture
def company_settings() -> dict[str, Any]:
    return copy.deepcopy(COMPANY_SETTINGS)
