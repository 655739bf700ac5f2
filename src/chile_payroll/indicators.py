"""Economic indicators used by payroll (UF, UTM, minimum wage).

Indicator values come from an external source; this module only holds
their shape, defaults, a small TTL cache around whatever loader the
caller provides, and the rules derived from them.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from chile_payroll.calculators.rules import JurisdictionRules

logger = logging.getLogger(__name__)

GRATIFICATION_MINIMUM_WAGES = Decimal("4.75")
CACHE_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class EconomicIndicators:
    """A snapshot of the indicators payroll depends on."""

    minimum_wage: Decimal
    uf: Decimal
    utm: Decimal
    ipc: Decimal = Decimal("0")
    tpm: Decimal = Decimal("0")
    usd: Decimal = Decimal("0")
    eur: Decimal = Decimal("0")
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def default_indicators() -> EconomicIndicators:
    """Approximate 2025 values, used when no live source is available."""
    return EconomicIndicators(
        minimum_wage=Decimal("529000"),
        uf=Decimal("37800"),
        utm=Decimal("66391"),
        tpm=Decimal("5.75"),
        usd=Decimal("950"),
        eur=Decimal("1000"),
    )


def gratification_cap(minimum_wage: Decimal) -> Decimal:
    """Monthly legal gratification cap: 4.75 minimum wages over 12 months."""
    monthly = minimum_wage * GRATIFICATION_MINIMUM_WAGES / 12
    return monthly.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def apply_indicators(
    rules: JurisdictionRules, indicators: EconomicIndicators
) -> JurisdictionRules:
    """Return a copy of ``rules`` using the indicators' UF and UTM."""
    return replace(rules, uf_value=indicators.uf, utm_value=indicators.utm)


class IndicatorCache:
    """Caches a loader's indicators for ``ttl`` seconds.

    If the loader fails and a fallback is configured, the failure is
    logged and the fallback value is returned (and not cached).
    """

    def __init__(
        self,
        loader: Callable[[], EconomicIndicators],
        ttl: float = CACHE_TTL_SECONDS,
        fallback: Callable[[], EconomicIndicators] | None = default_indicators,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl
        self._fallback = fallback
        self._clock = clock
        self._value: EconomicIndicators | None = None
        self._loaded_at: float | None = None

    def get(self) -> EconomicIndicators:
        now = self._clock()
        if (
            self._value is not None
            and self._loaded_at is not None
            and now - self._loaded_at < self._ttl
        ):
            return self._value

        try:
            value = self._loader()
        except Exception:
            if self._fallback is None:
                raise
            logger.exception("Indicator loader failed, using fallback values")
            return self._fallback()

        self._value = value
        self._loaded_at = now
        return value

    def invalidate(self) -> None:
        self._value = None
        self._loaded_at = None
