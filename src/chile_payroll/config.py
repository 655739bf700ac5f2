"""Configuration management for the payroll calculator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from dotenv import load_dotenv

UNKNOWN_FUND_POLICIES = ("default", "warn", "error")


class SettingsError(ValueError):
    """Raised when an environment setting cannot be parsed."""


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise SettingsError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    engine_version: str
    uf_value: Decimal
    utm_value: Decimal
    minimum_wage: Decimal
    unknown_fund_policy: str
    settings_file: str | None
    min_year: int
    max_year: int
    log_level: str

    @property
    def LOG_LEVEL(self) -> str:
        """Alias for log_level."""
        return self.log_level

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        policy = os.getenv("PAYROLL_UNKNOWN_FUND_POLICY", "default").lower()
        if policy not in UNKNOWN_FUND_POLICIES:
            raise SettingsError(
                f"PAYROLL_UNKNOWN_FUND_POLICY must be one of "
                f"{', '.join(UNKNOWN_FUND_POLICIES)}, got {policy!r}"
            )

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            uf_value=_env_decimal("PAYROLL_UF_VALUE", "37800"),
            utm_value=_env_decimal("PAYROLL_UTM_VALUE", "66391"),
            minimum_wage=_env_decimal("PAYROLL_MINIMUM_WAGE", "529000"),
            unknown_fund_policy=policy,
            settings_file=os.getenv("PAYROLL_SETTINGS_FILE") or None,
            min_year=_env_int("PAYROLL_MIN_YEAR", "2020"),
            max_year=_env_int("PAYROLL_MAX_YEAR", "2030"),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
