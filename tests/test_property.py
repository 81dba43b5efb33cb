# tests/test_property.py
import pytest
from pydantic import ValidationError

from blockplan.domain.errors import ConfigurationError
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import (
    expenses_for,
    rent_for_yield,
    rental_yield,
    to_purchase,
)

from fixtures.portfolios import example_purchase, vic_instance


def test_rental_yield_round_trip():
    assert rental_yield(600.0, 500_000.0) == pytest.approx(0.0624)
    assert rent_for_yield(500_000.0, 0.0624) == 600.0


def test_rental_yield_zero_price():
    with pytest.raises(ConfigurationError):
        rental_yield(500.0, 0.0)


def test_expenses_for_instance_use_fixed_maintenance():
    exp = expenses_for(vic_instance(vacancy_rate=2.0), land_tax=1_800.0)
    assert exp.management_fee_rate == pytest.approx(0.066)
    assert exp.vacancy_rate == pytest.approx(0.02)
    assert exp.maintenance_rate == 0.0
    assert exp.maintenance_annual == 1_750.0
    assert exp.strata_fees == 2_700.0
    assert exp.land_tax == 1_800.0


def test_to_purchase_converts_percent_rates():
    p = to_purchase(vic_instance(interest_rate=6.0), year=2026.5, loan_amount=400_000.0, deposit_required=100_000.0)
    assert p.interest_rate == pytest.approx(0.06)
    assert p.rental_yield == pytest.approx(0.0624)
    assert p.year == 2026.5
    assert p.growth_curve is None


def test_curve_resolution_order():
    default = GrowthCurve()
    assert example_purchase().curve_or(default) == default
    assert example_purchase(growth_rate=0.04).curve_or(default) == GrowthCurve.flat(4.0)
    own = GrowthCurve.flat(2.0)
    assert example_purchase(growth_rate=0.04, growth_curve=own).curve_or(default) == own


def test_purchases_are_immutable():
    p = example_purchase()
    with pytest.raises(ValidationError):
        p.cost = 1.0
    assert p.with_loan_type("PI").loan_type == "PI"
    assert p.loan_type == "IO"
