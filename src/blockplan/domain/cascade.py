# src/blockplan/domain/cascade.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from blockplan.domain.cashflow import DEFAULT_TERM_YEARS, analyze_cashflow
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import PropertyExpenses, PropertyPurchase

@dataclass(frozen=True)
class CascadeState:
    """
    Capital ledger after N purchases.

    Invariant: total_equity == portfolio_value - total_debt.
    Never mutated; `transition` returns a new state.
    """
    available_funds: float
    borrowing_capacity: float
    portfolio_value: float = 0.0
    total_debt: float = 0.0
    total_equity: float = 0.0


@dataclass(frozen=True)
class PurchaseEffect:
    """What one purchase does to the ledger."""
    property_value: float
    loan_amount: float
    total_cash_required: float
    net_cashflow: float
    title: str = ""

    @classmethod
    def from_purchase(
        cls,
        purchase: PropertyPurchase,
        total_cash_required: float,
        growth_curve: GrowthCurve,
        expenses: PropertyExpenses,
        default_interest_rate: float = 0.065,
        term_years: int = DEFAULT_TERM_YEARS,
    ) -> "PurchaseEffect":
        # first-period cashflow: evaluated at the purchase time itself
        analysis = analyze_cashflow(
            purchase, purchase.year, growth_curve, expenses, default_interest_rate, term_years
        )
        return cls(
            property_value=purchase.cost,
            loan_amount=purchase.loan_amount,
            total_cash_required=total_cash_required,
            net_cashflow=analysis.net_cashflow,
            title=purchase.title,
        )


def initial_state(deposit_pool: float, borrowing_capacity: float) -> CascadeState:
    return CascadeState(available_funds=deposit_pool, borrowing_capacity=borrowing_capacity)


def transition(
    state: CascadeState,
    effect: PurchaseEffect,
    equity_release_factor: float,
) -> CascadeState:
    """
    Apply one purchase to the ledger.

    Funds drop by the cash required and recover the purchase's net cashflow.
    A fraction of the resulting total equity is released back into funds
    for the next decision, so the order of purchases changes the outcome.
    """
    funds = state.available_funds - effect.total_cash_required + effect.net_cashflow
    portfolio_value = state.portfolio_value + effect.property_value
    total_debt = state.total_debt + effect.loan_amount
    total_equity = portfolio_value - total_debt
    return CascadeState(
        available_funds=funds + total_equity * equity_release_factor,
        borrowing_capacity=state.borrowing_capacity - effect.loan_amount,
        portfolio_value=portfolio_value,
        total_debt=total_debt,
        total_equity=total_equity,
    )


def replay(
    initial: CascadeState,
    effects: Iterable[PurchaseEffect],
    equity_release_factor: float,
) -> list[CascadeState]:
    """Every state along the sequence, starting with `initial`."""
    states = [initial]
    for effect in effects:
        states.append(transition(states[-1], effect, equity_release_factor))
    return states
