# src/blockplan/services/projections.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.growth import BASE_YEAR, periods_between
from blockplan.domain.metrics import (
    PropertyMetrics,
    existing_portfolio_metrics,
    portfolio_metrics,
)
from blockplan.domain.profile import InvestmentProfile
from blockplan.domain.property import PropertyPurchase


@dataclass(frozen=True)
class YearProjection:
    year: int
    metrics: PropertyMetrics
    property_count: int


@dataclass(frozen=True)
class GoalYears:
    equity_goal_year: int | None
    cashflow_goal_year: int | None

    @property
    def both_met_year(self) -> int | None:
        if self.equity_goal_year is None or self.cashflow_goal_year is None:
            return None
        return max(self.equity_goal_year, self.cashflow_goal_year)


def project_portfolio(
    purchases: Sequence[PropertyPurchase],
    profile: InvestmentProfile,
    assumptions: EconomicAssumptions,
) -> list[YearProjection]:
    """
    Year-by-year metrics from BASE_YEAR over the profile's timeline.

    Existing holdings grow from BASE_YEAR; each purchase counts from its own
    purchase year onward.
    """
    curve = profile.growth_curve or assumptions.growth_curve
    out: list[YearProjection] = []
    for offset in range(max(0, profile.timeline_years) + 1):
        year = BASE_YEAR + offset
        existing = existing_portfolio_metrics(
            profile.portfolio_value,
            profile.current_debt,
            periods_between(BASE_YEAR, year),
            curve,
            assumptions.interest_rate,
        )
        bought = portfolio_metrics(
            purchases,
            year,
            curve,
            assumptions.expenses,
            assumptions.interest_rate,
            assumptions.loan_term_years,
        )
        out.append(
            YearProjection(
                year=year,
                metrics=existing + bought,
                property_count=sum(1 for p in purchases if p.year <= year),
            )
        )
    return out


def _first_year(years: np.ndarray, mask: np.ndarray) -> int | None:
    hits = np.flatnonzero(mask)
    if hits.size == 0:
        return None
    return int(years[hits[0]])


def find_goal_years(
    projection: Sequence[YearProjection],
    equity_goal: float | None,
    cashflow_goal: float | None,
) -> GoalYears:
    """First projected year meeting each goal; None when never met or unset."""
    if not projection:
        return GoalYears(None, None)

    years = np.array([p.year for p in projection])
    equity = np.array([p.metrics.total_equity for p in projection])
    cashflow = np.array([p.metrics.annual_cashflow for p in projection])

    equity_year = _first_year(years, equity >= equity_goal) if equity_goal is not None else None
    cashflow_year = (
        _first_year(years, cashflow >= cashflow_goal) if cashflow_goal is not None else None
    )
    return GoalYears(equity_goal_year=equity_year, cashflow_goal_year=cashflow_year)
