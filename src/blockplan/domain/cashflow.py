# src/blockplan/domain/cashflow.py
from __future__ import annotations

from dataclasses import dataclass

from blockplan.domain.growth import (
    GrowthCurve,
    annual_to_period_rate,
    grow_value,
    periods_between,
    whole_periods,
)
from blockplan.domain.property import LoanType, PropertyExpenses, PropertyPurchase

EXPENSE_INFLATION_RATE = 0.03
DEFAULT_TERM_YEARS = 30


@dataclass(frozen=True)
class ExpenseBreakdown:
    management_fees: float
    council_rates: float
    insurance: float
    maintenance: float
    vacancy_allowance: float
    strata_fees: float
    land_tax: float

    @property
    def total(self) -> float:
        return (
            self.management_fees
            + self.council_rates
            + self.insurance
            + self.maintenance
            + self.vacancy_allowance
            + self.strata_fees
            + self.land_tax
        )


@dataclass(frozen=True)
class CashflowAnalysis:
    periods_held: int
    current_value: float
    rental_income: float        # annual
    mortgage_payments: float    # annual
    property_expenses: float    # annual
    net_cashflow: float         # annual
    expense_breakdown: ExpenseBreakdown


def annuity_payment(rate_monthly: float, n_months: int, principal: float) -> float:
    r = rate_monthly
    if r == 0:
        return principal / n_months
    return principal * (r * (1 + r) ** n_months) / ((1 + r) ** n_months - 1)


def annual_mortgage_payment(
    loan_amount: float,
    interest_rate: float,
    loan_type: LoanType,
    term_years: int = DEFAULT_TERM_YEARS,
) -> float:
    """
    IO: loan * rate.
    PI: standard amortised payment over the full term, annualised.
    """
    if loan_type == "IO":
        return loan_amount * interest_rate
    return annuity_payment(interest_rate / 12.0, term_years * 12, loan_amount) * 12.0


def inflation_factor(periods: float) -> float:
    per_period = annual_to_period_rate(EXPENSE_INFLATION_RATE)
    return (1.0 + per_period) ** whole_periods(periods)


def analyze_cashflow(
    purchase: PropertyPurchase,
    current_year: float,
    growth_curve: GrowthCurve,
    expenses: PropertyExpenses,
    default_interest_rate: float = 0.065,
    term_years: int = DEFAULT_TERM_YEARS,
) -> CashflowAnalysis:
    """
    Income, debt service and operating expenses of one property at `current_year`.

    Years at or before the purchase use the purchase-time value. The loan
    balance never amortises, even for PI loans; only the payment differs.
    """
    periods = periods_between(purchase.year, current_year)
    curve = purchase.curve_or(growth_curve)
    current_value = grow_value(purchase.cost, periods, curve)

    # yield is reapplied to the grown value
    rental_income = current_value * purchase.rental_yield

    rate = purchase.interest_rate if purchase.interest_rate is not None else default_interest_rate
    mortgage = annual_mortgage_payment(purchase.loan_amount, rate, purchase.loan_type, term_years)

    infl = inflation_factor(periods)
    breakdown = ExpenseBreakdown(
        management_fees=rental_income * expenses.management_fee_rate * infl,
        council_rates=expenses.council_rates * infl,
        insurance=expenses.insurance * infl,
        maintenance=(current_value * expenses.maintenance_rate + expenses.maintenance_annual) * infl,
        vacancy_allowance=rental_income * expenses.vacancy_rate * infl,
        strata_fees=expenses.strata_fees * infl,
        land_tax=expenses.land_tax * infl,
    )
    total_expenses = breakdown.total

    return CashflowAnalysis(
        periods_held=whole_periods(periods),
        current_value=current_value,
        rental_income=rental_income,
        mortgage_payments=mortgage,
        property_expenses=total_expenses,
        net_cashflow=rental_income - mortgage - total_expenses,
        expense_breakdown=breakdown,
    )
