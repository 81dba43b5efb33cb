from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterable

from blockplan.domain.cashflow import DEFAULT_TERM_YEARS, analyze_cashflow
from blockplan.domain.growth import GrowthCurve, grow_value
from blockplan.domain.property import PropertyExpenses, PropertyPurchase


@dataclass(frozen=True)
class PropertyMetrics:
    """
    Portfolio-level aggregate at one point in time.

    Always derived from per-property analyses. Addition is field-wise, so
    combining is associative and commutative with ZERO_METRICS as identity.
    """
    portfolio_value: float = 0.0
    total_equity: float = 0.0
    total_debt: float = 0.0
    annual_cashflow: float = 0.0
    annual_loan_repayments: float = 0.0

    def __add__(self, other: "PropertyMetrics") -> "PropertyMetrics":
        if not isinstance(other, PropertyMetrics):
            return NotImplemented
        return PropertyMetrics(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )


ZERO_METRICS = PropertyMetrics()


def combine_metrics(*metrics: PropertyMetrics) -> PropertyMetrics:
    combined = ZERO_METRICS
    for m in metrics:
        combined = combined + m
    return combined


def purchase_metrics(
    purchase: PropertyPurchase,
    target_year: float,
    growth_curve: GrowthCurve,
    expenses: PropertyExpenses,
    default_interest_rate: float = 0.065,
    term_years: int = DEFAULT_TERM_YEARS,
) -> PropertyMetrics:
    analysis = analyze_cashflow(
        purchase, target_year, growth_curve, expenses, default_interest_rate, term_years
    )
    # no principal reduction, even for PI
    debt = purchase.loan_amount
    return PropertyMetrics(
        portfolio_value=analysis.current_value,
        total_equity=max(0.0, analysis.current_value - debt),
        total_debt=debt,
        annual_cashflow=analysis.net_cashflow,
        annual_loan_repayments=analysis.mortgage_payments,
    )


def portfolio_metrics(
    purchases: Iterable[PropertyPurchase],
    target_year: float,
    growth_curve: GrowthCurve,
    expenses: PropertyExpenses,
    default_interest_rate: float = 0.065,
    term_years: int = DEFAULT_TERM_YEARS,
) -> PropertyMetrics:
    """
    Sum of per-purchase metrics for every purchase made at or before
    `target_year`. Later purchases contribute nothing.
    """
    return combine_metrics(
        *(
            purchase_metrics(p, target_year, growth_curve, expenses, default_interest_rate, term_years)
            for p in purchases
            if p.year <= target_year
        )
    )


def existing_portfolio_metrics(
    portfolio_value: float,
    current_debt: float,
    periods_grown: float,
    growth_curve: GrowthCurve,
    interest_rate: float = 0.065,
) -> PropertyMetrics:
    """
    Holdings the client already owns. They earn no rental income in this
    model; their only cashflow is the interest on existing debt.
    """
    if portfolio_value == 0:
        return ZERO_METRICS

    current_value = grow_value(portfolio_value, periods_grown, growth_curve)
    repayments = current_debt * interest_rate
    return PropertyMetrics(
        portfolio_value=current_value,
        total_equity=max(0.0, current_value - current_debt),
        total_debt=current_debt,
        annual_cashflow=-repayments,
        annual_loan_repayments=repayments,
    )
