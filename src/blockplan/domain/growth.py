# src/blockplan/domain/growth.py
from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict

PERIODS_PER_YEAR = 2
BASE_YEAR = 2025

# Last period index (inclusive) of each tier. Period 9 onwards is year5plus.
YEAR1_LAST_PERIOD = 2
YEARS2TO3_LAST_PERIOD = 6
YEAR4_LAST_PERIOD = 8


class GrowthCurve(BaseModel):
    """
    Annual growth rates in percent, keyed by holding-period tier.
    """
    model_config = ConfigDict(frozen=True)

    year1: float = 12.5
    years2to3: float = 10.0
    year4: float = 7.5
    year5plus: float = 6.0

    @classmethod
    def flat(cls, annual_pct: float) -> "GrowthCurve":
        return cls(year1=annual_pct, years2to3=annual_pct, year4=annual_pct, year5plus=annual_pct)


def annual_to_period_rate(annual_rate: float, periods_per_year: int = PERIODS_PER_YEAR) -> float:
    """
    (1 + r)^(1/n) - 1, so that n periods compound to exactly one year at r.
    """
    return (1.0 + annual_rate) ** (1.0 / periods_per_year) - 1.0


def tier_rate_pct(curve: GrowthCurve, period: int) -> float:
    """Annual percent rate that applies to a 1-based period index."""
    if period <= YEAR1_LAST_PERIOD:
        return curve.year1
    if period <= YEARS2TO3_LAST_PERIOD:
        return curve.years2to3
    if period <= YEAR4_LAST_PERIOD:
        return curve.year4
    return curve.year5plus


def whole_periods(periods: float) -> int:
    """
    Compounding only happens on completed periods; fractional remainders are
    dropped and negative spans clamp to zero.
    """
    if periods <= 0:
        return 0
    # tolerate float noise like (2027.5 - 2025.0) * 2 == 4.999999...
    return int(math.floor(periods + 1e-9))


def grow_value(initial_value: float, periods: float, curve: GrowthCurve) -> float:
    """
    Compound `initial_value` over `periods` half-year periods using the tiered
    curve. Period 1 is the first half-year after purchase.
    """
    n = whole_periods(periods)
    rates = {
        pct: annual_to_period_rate(pct / 100.0)
        for pct in (curve.year1, curve.years2to3, curve.year4, curve.year5plus)
    }
    value = initial_value
    for period in range(1, n + 1):
        value *= 1.0 + rates[tier_rate_pct(curve, period)]
    return value


def growth_factor(periods: float, curve: GrowthCurve) -> float:
    return grow_value(1.0, periods, curve)


def periods_between(from_year: float, to_year: float) -> float:
    """Elapsed periods between two (possibly fractional) calendar years, never negative."""
    return max(0.0, (to_year - from_year) * PERIODS_PER_YEAR)


def year_for_period(period: int) -> float:
    """Period 1 is 2025 H1 -> 2025.0, period 2 is 2025 H2 -> 2025.5."""
    return BASE_YEAR + (period - 1) / PERIODS_PER_YEAR


def period_label(period: int) -> str:
    year = BASE_YEAR + (period - 1) // PERIODS_PER_YEAR
    half = 1 if (period - 1) % PERIODS_PER_YEAR == 0 else 2
    return f"{year} H{half}"
