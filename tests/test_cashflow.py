# tests/test_cashflow.py
import pytest

from blockplan.domain.cashflow import annual_mortgage_payment, analyze_cashflow, inflation_factor
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import PropertyExpenses

from fixtures.portfolios import example_purchase


def _purchase_500k():
    return example_purchase(loan_amount=400_000.0, deposit_required=100_000.0, interest_rate=0.065)


def test_interest_only_payment_is_loan_times_rate():
    assert annual_mortgage_payment(400_000.0, 0.065, "IO") == pytest.approx(26_000.0)


def test_principal_and_interest_payment_annualised():
    # 400k over 30 years at 6.5% is ~$2,528.27/month
    assert annual_mortgage_payment(400_000.0, 0.065, "PI", 30) == pytest.approx(2_528.27 * 12, rel=1e-4)


def test_principal_and_interest_at_zero_rate():
    assert annual_mortgage_payment(360_000.0, 0.0, "PI", 30) == pytest.approx(12_000.0)


def test_cashflow_in_purchase_year():
    """
    No growth and no inflation yet:
      rent 25,000; IO debt 26,000;
      expenses 2,000 mgmt + 2,000 council + 1,500 insurance + 5,000 maint + 500 vacancy.
    """
    a = analyze_cashflow(_purchase_500k(), 2025.0, GrowthCurve(), PropertyExpenses())

    assert a.periods_held == 0
    assert a.current_value == pytest.approx(500_000.0)
    assert a.rental_income == pytest.approx(25_000.0)
    assert a.mortgage_payments == pytest.approx(26_000.0)
    assert a.property_expenses == pytest.approx(11_000.0)
    assert a.net_cashflow == pytest.approx(-12_000.0)


def test_cashflow_one_year_after_purchase():
    a = analyze_cashflow(_purchase_500k(), 2026.0, GrowthCurve(), PropertyExpenses())

    assert a.periods_held == 2
    assert a.current_value == pytest.approx(562_500.0)
    assert a.rental_income == pytest.approx(28_125.0)
    # every expense inflated by 3% for the year
    assert a.expense_breakdown.council_rates == pytest.approx(2_060.0)
    assert a.expense_breakdown.maintenance == pytest.approx(5_625.0 * 1.03)
    assert a.property_expenses == pytest.approx(12_295.625)
    # debt is unchanged
    assert a.mortgage_payments == pytest.approx(26_000.0)


def test_years_before_purchase_use_purchase_value():
    a = analyze_cashflow(_purchase_500k(), 2020.0, GrowthCurve(), PropertyExpenses())
    assert a.current_value == pytest.approx(500_000.0)
    assert a.periods_held == 0


def test_purchase_rate_overrides_default():
    p = example_purchase(interest_rate=None)
    a = analyze_cashflow(p, 2025.0, GrowthCurve(), PropertyExpenses(), default_interest_rate=0.05)
    assert a.mortgage_payments == pytest.approx(450_000.0 * 0.05)


def test_inflation_factor_compounds_per_year():
    assert inflation_factor(0) == 1.0
    assert inflation_factor(2) == pytest.approx(1.03)
    assert inflation_factor(4) == pytest.approx(1.03 ** 2)
