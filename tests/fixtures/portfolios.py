# tests/fixtures/portfolios.py

from blockplan.domain.cascade import CascadeState, PurchaseEffect
from blockplan.domain.property import PropertyInstanceDetails, PropertyPurchase


def vic_instance(**changes) -> PropertyInstanceDetails:
    """
    500k VIC house at 80% LVR, IO at 6.5%, $600/week.
    Cash required 138,270 (deposit 93k + stamp 25,070 + fees 13,200 + holding deposit 7k).
    Serviceability shortfall 3,659.20 (a warning: under 2% of price).
    """
    base = PropertyInstanceDetails(
        state="VIC",
        purchase_price=500_000.0,
        rent_per_week=600.0,
        lvr=80.0,
    )
    return base.with_changes(**changes) if changes else base


def overreach_instance() -> PropertyInstanceDetails:
    """
    2M at 95% LVR, $200/week. Cash required 223,070; loan 1,966,500 with
    capitalised LMI. Fails every guardrail against a 220k / 1.05M client.
    """
    return PropertyInstanceDetails(
        state="VIC",
        purchase_price=2_000_000.0,
        rent_per_week=200.0,
        lvr=95.0,
    )


def example_purchase(**changes) -> PropertyPurchase:
    """500k at 90% LVR, 5% gross yield, IO."""
    fields = dict(
        title="First purchase",
        year=2025.0,
        cost=500_000.0,
        loan_amount=450_000.0,
        deposit_required=50_000.0,
        rental_yield=0.05,
    )
    fields.update(changes)
    return PropertyPurchase(**fields)


def example_state() -> CascadeState:
    return CascadeState(available_funds=220_000.0, borrowing_capacity=1_050_000.0)


def rich_state() -> CascadeState:
    return CascadeState(available_funds=5_000_000.0, borrowing_capacity=10_000_000.0)


def positive_effect() -> PurchaseEffect:
    """400k block, +$5k cashflow."""
    return PurchaseEffect(
        property_value=400_000.0,
        loan_amount=320_000.0,
        total_cash_required=100_000.0,
        net_cashflow=5_000.0,
        title="P1",
    )


def negative_effect() -> PurchaseEffect:
    """600k block, -$2k cashflow."""
    return PurchaseEffect(
        property_value=600_000.0,
        loan_amount=480_000.0,
        total_cash_required=140_000.0,
        net_cashflow=-2_000.0,
        title="P2",
    )


