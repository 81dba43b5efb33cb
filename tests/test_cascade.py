# tests/test_cascade.py
import pytest

from blockplan.domain.cascade import (
    CascadeState,
    PurchaseEffect,
    initial_state,
    replay,
    transition,
)
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import PropertyExpenses

from fixtures.portfolios import example_purchase, example_state, negative_effect, positive_effect


def test_example_transition_without_equity_release():
    effect = PurchaseEffect(
        property_value=500_000.0,
        loan_amount=450_000.0,
        total_cash_required=69_000.0,
        net_cashflow=0.0,
    )
    nxt = transition(example_state(), effect, equity_release_factor=0.0)

    assert nxt.available_funds == pytest.approx(151_000.0)
    assert nxt.borrowing_capacity == pytest.approx(600_000.0)
    assert nxt.portfolio_value == pytest.approx(500_000.0)
    assert nxt.total_debt == pytest.approx(450_000.0)
    assert nxt.total_equity == pytest.approx(50_000.0)


def test_transition_does_not_mutate_input():
    s0 = example_state()
    transition(s0, positive_effect(), 0.25)
    assert s0 == CascadeState(available_funds=220_000.0, borrowing_capacity=1_050_000.0)


def test_equity_release_uses_total_equity_after_purchase():
    s0 = CascadeState(
        available_funds=100_000.0,
        borrowing_capacity=1_000_000.0,
        portfolio_value=500_000.0,
        total_debt=400_000.0,
        total_equity=100_000.0,
    )
    nxt = transition(s0, positive_effect(), 0.5)
    # equity 100k + 80k = 180k, half released
    assert nxt.total_equity == pytest.approx(180_000.0)
    assert nxt.available_funds == pytest.approx(100_000.0 - 100_000.0 + 5_000.0 + 90_000.0)


def test_purchase_order_changes_outcome():
    s0 = initial_state(deposit_pool=500_000.0, borrowing_capacity=2_000_000.0)
    p1, p2 = positive_effect(), negative_effect()

    after_p1 = transition(s0, p1, 0.25)
    after_p2 = transition(s0, p2, 0.25)
    # positive-cashflow purchase first leaves more funds for the next decision
    assert after_p1.available_funds == pytest.approx(425_000.0)
    assert after_p2.available_funds == pytest.approx(388_000.0)
    assert after_p1.available_funds > after_p2.available_funds

    one_two = transition(after_p1, p2, 0.25)
    two_one = transition(after_p2, p1, 0.25)
    assert one_two.available_funds == pytest.approx(333_000.0)
    assert two_one.available_funds == pytest.approx(343_000.0)
    assert one_two != two_one

    # capacity is consumed the same either way
    assert one_two.borrowing_capacity == pytest.approx(two_one.borrowing_capacity)


def test_replay_includes_initial_state():
    s0 = initial_state(500_000.0, 2_000_000.0)
    states = replay(s0, [positive_effect(), negative_effect()], 0.25)

    assert len(states) == 3
    assert states[0] is s0
    assert states[-1].available_funds == pytest.approx(333_000.0)


def test_equity_invariant_holds_along_replay():
    states = replay(initial_state(1_000_000.0, 5_000_000.0), [positive_effect()] * 4, 0.1)
    for s in states:
        assert s.total_equity == pytest.approx(s.portfolio_value - s.total_debt)


def test_effect_from_purchase_uses_first_period_cashflow():
    p = example_purchase(interest_rate=0.065)
    effect = PurchaseEffect.from_purchase(p, 69_000.0, GrowthCurve(), PropertyExpenses())

    # rent 25,000 - debt 29,250 - expenses 11,000
    assert effect.net_cashflow == pytest.approx(-15_250.0)
    assert effect.property_value == 500_000.0
    assert effect.loan_amount == 450_000.0


def _bare_expenses():
    return PropertyExpenses(
        management_fee_rate=0.0,
        council_rates=0.0,
        insurance=0.0,
        maintenance_rate=0.0,
        vacancy_rate=0.0,
    )


def test_purchase_order_changes_outcome_for_real_purchases():
    p1 = example_purchase(
        title="P1", cost=400_000.0, loan_amount=320_000.0, deposit_required=80_000.0,
        rental_yield=0.0525, interest_rate=0.05,
    )
    p2 = example_purchase(
        title="P2", cost=600_000.0, loan_amount=480_000.0, deposit_required=120_000.0,
        rental_yield=22_000.0 / 600_000.0, interest_rate=0.05,
    )
    e1 = PurchaseEffect.from_purchase(p1, 100_000.0, GrowthCurve(), _bare_expenses())
    e2 = PurchaseEffect.from_purchase(p2, 140_000.0, GrowthCurve(), _bare_expenses())
    assert e1.net_cashflow == pytest.approx(5_000.0)
    assert e2.net_cashflow == pytest.approx(-2_000.0)

    s0 = initial_state(deposit_pool=500_000.0, borrowing_capacity=2_000_000.0)
    one_two = replay(s0, [e1, e2], 0.25)
    two_one = replay(s0, [e2, e1], 0.25)

    assert one_two[1].available_funds == pytest.approx(425_000.0)
    assert two_one[1].available_funds == pytest.approx(388_000.0)
    assert one_two[-1].available_funds == pytest.approx(333_000.0)
    assert two_one[-1].available_funds == pytest.approx(343_000.0)


def test_effect_from_purchase_honours_loan_term():
    p = example_purchase(interest_rate=0.065, loan_type="PI")
    thirty = PurchaseEffect.from_purchase(p, 69_000.0, GrowthCurve(), PropertyExpenses())
    twenty_five = PurchaseEffect.from_purchase(p, 69_000.0, GrowthCurve(), PropertyExpenses(), term_years=25)
    # shorter amortisation means larger repayments
    assert twenty_five.net_cashflow < thirty.net_cashflow
