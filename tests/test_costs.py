# tests/test_costs.py
import pytest

from blockplan.domain.costs import (
    calculate_land_tax,
    calculate_lmi,
    calculate_stamp_duty,
    land_tax_for,
    lmi_rate,
    quote_acquisition,
)

from fixtures.portfolios import overreach_instance, vic_instance


@pytest.mark.parametrize(
    "state, price, expected",
    [
        ("VIC", 500_000.0, 25_070.0),
        ("VIC", 2_000_000.0, 109_870.0),
        ("vic", 500_000.0, 25_070.0),
        ("NSW", 500_000.0, 17_707.5),
        ("ACT", 500_000.0, 20_000.0),
        ("XX", 500_000.0, 0.0),
    ],
)
def test_stamp_duty(state, price, expected):
    assert calculate_stamp_duty(state, price) == pytest.approx(expected)


def test_land_tax():
    assert calculate_land_tax("VIC", 800_000.0) == pytest.approx(1_800.0)
    assert calculate_land_tax("NSW", 500_000.0) == 0.0
    assert calculate_land_tax("", 500_000.0) == 0.0


def test_land_tax_for_prefers_override_then_land_value():
    assert land_tax_for(vic_instance()) == 0.0
    assert land_tax_for(vic_instance(land_value=800_000.0)) == pytest.approx(1_800.0)
    assert land_tax_for(vic_instance(land_value=800_000.0, land_tax_override=500.0)) == 500.0


@pytest.mark.parametrize(
    "lvr, rate",
    [(60, 0.0), (80, 0.0), (82, 0.015), (85, 0.015), (90, 0.02), (95, 0.035), (97, 0.045)],
)
def test_lmi_tiers(lvr, rate):
    assert lmi_rate(lvr) == rate


def test_lmi_waiver():
    assert calculate_lmi(500_000.0, 90.0, lmi_waiver=True) == 0.0
    assert calculate_lmi(500_000.0, 90.0, lmi_waiver=False) == pytest.approx(9_000.0)


def test_quote_without_lmi():
    q = quote_acquisition(vic_instance())

    assert q.loan_amount == pytest.approx(400_000.0)
    assert q.deposit == pytest.approx(100_000.0)
    assert q.lmi == 0.0
    assert q.stamp_duty == pytest.approx(25_070.0)
    assert q.fees == pytest.approx(13_200.0)
    assert q.one_off.deposit_balance == pytest.approx(93_000.0)
    assert q.total_cash_required == pytest.approx(138_270.0)


def test_quote_with_capitalised_lmi():
    q = quote_acquisition(overreach_instance())

    assert q.lmi == pytest.approx(66_500.0)
    assert q.lmi_capitalized
    assert q.lmi_upfront == 0.0
    assert q.loan_amount == pytest.approx(1_966_500.0)
    assert q.total_cash_required == pytest.approx(223_070.0)


def test_quote_with_upfront_lmi():
    q = quote_acquisition(overreach_instance().with_changes(capitalize_lmi=False))

    assert q.loan_amount == pytest.approx(1_900_000.0)
    assert q.lmi_upfront == pytest.approx(66_500.0)
    assert q.total_cash_required == pytest.approx(289_570.0)


def test_stamp_duty_override():
    q = quote_acquisition(vic_instance(stamp_duty_override=0.0))
    assert q.stamp_duty == 0.0
    assert q.total_cash_required == pytest.approx(113_200.0)
