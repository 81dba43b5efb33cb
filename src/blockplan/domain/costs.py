# src/blockplan/domain/costs.py
"""
Acquisition cost calculators: stamp duty, LMI, land tax and one-off costs.

These are simplified, fixed-formula approximations of the state schedules.
They are pure functions of price / LVR / state and are treated as black
boxes by the rest of the engine.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from blockplan.domain.property import PropertyInstanceDetails

# (upper bound inclusive, base amount, marginal rate, rate applies above)
Bracket = tuple[float, float, float, float]

_INF = math.inf

STAMP_DUTY_TABLES: dict[str, list[Bracket]] = {
    "VIC": [
        (25_000, 0.0, 0.014, 0),
        (130_000, 350.0, 0.024, 25_000),
        (960_000, 2_870.0, 0.06, 130_000),
        (_INF, 52_670.0, 0.055, 960_000),
    ],
    "NSW": [
        (14_000, 0.0, 0.0125, 0),
        (32_000, 175.0, 0.015, 14_000),
        (85_000, 445.0, 0.0175, 32_000),
        (319_000, 1_372.50, 0.035, 85_000),
        (1_064_000, 9_562.50, 0.045, 319_000),
        (_INF, 43_072.50, 0.055, 1_064_000),
    ],
    "QLD": [
        (5_000, 0.0, 0.0, 0),
        (75_000, 0.0, 0.015, 5_000),
        (540_000, 1_050.0, 0.035, 75_000),
        (1_000_000, 17_325.0, 0.045, 540_000),
        (_INF, 38_025.0, 0.0575, 1_000_000),
    ],
    "SA": [
        (12_000, 0.0, 0.01, 0),
        (30_000, 120.0, 0.02, 12_000),
        (50_000, 480.0, 0.03, 30_000),
        (100_000, 1_080.0, 0.035, 50_000),
        (200_000, 2_830.0, 0.04, 100_000),
        (250_000, 6_830.0, 0.0425, 200_000),
        (300_000, 8_955.0, 0.045, 250_000),
        (500_000, 11_205.0, 0.0475, 300_000),
        (_INF, 20_705.0, 0.055, 500_000),
    ],
    "WA": [
        (120_000, 0.0, 0.019, 0),
        (150_000, 2_280.0, 0.029, 120_000),
        (360_000, 3_150.0, 0.039, 150_000),
        (725_000, 11_340.0, 0.049, 360_000),
        (_INF, 29_225.0, 0.051, 725_000),
    ],
    "TAS": [
        (3_000, 50.0, 0.0, 0),
        (25_000, 50.0, 0.0175, 3_000),
        (75_000, 435.0, 0.0225, 25_000),
        (200_000, 1_560.0, 0.035, 75_000),
        (375_000, 5_935.0, 0.04, 200_000),
        (725_000, 12_935.0, 0.0425, 375_000),
        (_INF, 27_812.50, 0.045, 725_000),
    ],
    "NT": [
        (525_000, 0.0, 0.0, 0),
        (3_000_000, 0.0, 0.0465, 525_000),
        (5_000_000, 115_087.50, 0.0565, 3_000_000),
        (_INF, 228_087.50, 0.0665, 5_000_000),
    ],
    # ACT is rates-based; flat estimate
    "ACT": [(_INF, 0.0, 0.04, 0)],
}

LAND_TAX_TABLES: dict[str, list[Bracket]] = {
    "VIC": [
        (300_000, 0.0, 0.0, 0),
        (600_000, 0.0, 0.002, 300_000),
        (1_000_000, 600.0, 0.006, 600_000),
        (1_800_000, 3_000.0, 0.010, 1_000_000),
        (3_000_000, 11_000.0, 0.012, 1_800_000),
        (_INF, 25_400.0, 0.025, 3_000_000),
    ],
    "NSW": [
        (755_000, 0.0, 0.0, 0),
        (_INF, 100.0, 0.016, 755_000),
    ],
    "QLD": [
        (600_000, 0.0, 0.0, 0),
        (999_999, 0.0, 0.005, 600_000),
        (2_999_999, 2_000.0, 0.009, 1_000_000),
        (4_999_999, 20_000.0, 0.016, 3_000_000),
        (_INF, 52_000.0, 0.022, 5_000_000),
    ],
    "SA": [
        (450_000, 0.0, 0.0, 0),
        (_INF, 0.0, 0.005, 450_000),
    ],
    "WA": [
        (300_000, 0.0, 0.0, 0),
        (1_000_000, 0.0, 0.0025, 300_000),
        (1_800_000, 1_750.0, 0.009, 1_000_000),
        (_INF, 8_950.0, 0.015, 1_800_000),
    ],
    "TAS": [
        (25_000, 0.0, 0.0, 0),
        (_INF, 50.0, 0.0055, 25_000),
    ],
    "NT": [(_INF, 0.0, 0.0, 0)],
    "ACT": [(_INF, 0.0, 0.006, 0)],
}


def _apply_brackets(amount: float, table: list[Bracket]) -> float:
    for upper, base, rate, floor in table:
        if amount <= upper:
            return base + (amount - floor) * rate
    raise AssertionError("bracket table must end with an unbounded bracket")


def calculate_stamp_duty(state: str, purchase_price: float) -> float:
    table = STAMP_DUTY_TABLES.get((state or "").upper())
    if table is None:
        return 0.0
    return _apply_brackets(purchase_price, table)


def calculate_land_tax(state: str, land_value: float) -> float:
    table = LAND_TAX_TABLES.get((state or "").upper())
    if table is None:
        return 0.0
    return _apply_brackets(land_value, table)


# ---------------------------------------------------------------------
# LMI
# ---------------------------------------------------------------------

LMI_THRESHOLD_LVR = 80.0


def lmi_rate(lvr: float) -> float:
    """Premium as a fraction of the base loan for a given LVR (percent)."""
    if lvr <= LMI_THRESHOLD_LVR:
        return 0.0
    if lvr <= 85:
        return 0.015
    if lvr <= 90:
        return 0.020
    if lvr <= 95:
        return 0.035
    return 0.045


def calculate_lmi(purchase_price: float, lvr: float, lmi_waiver: bool) -> float:
    if lmi_waiver:
        return 0.0
    return purchase_price * (lvr / 100.0) * lmi_rate(lvr)


def calculate_loan_amount(
    purchase_price: float,
    lvr: float,
    lmi: float,
    capitalize_lmi: bool = True,
) -> float:
    base_loan = purchase_price * (lvr / 100.0)
    return base_loan + lmi if capitalize_lmi else base_loan


# ---------------------------------------------------------------------
# One-off costs
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class OneOffCosts:
    engagement_total: float
    exchange_total: float
    unconditional_total: float
    deposit_balance: float
    stamp_duty: float
    settlement_total: float
    post_settlement_total: float

    @property
    def total_cash_required(self) -> float:
        return (
            self.engagement_total
            + self.exchange_total
            + self.unconditional_total
            + self.settlement_total
            + self.post_settlement_total
        )


def calculate_deposit_balance(
    purchase_price: float,
    lvr: float,
    conditional_deposit: float,
    unconditional_deposit: float,
) -> float:
    """Total deposit less the holding deposits already paid at exchange."""
    total_deposit = purchase_price * ((100.0 - lvr) / 100.0)
    return total_deposit - (conditional_deposit + unconditional_deposit)


def calculate_one_off_costs(
    instance: PropertyInstanceDetails,
    stamp_duty: float,
    deposit_balance: float,
) -> OneOffCosts:
    exchange_total = (
        instance.conditional_holding_deposit
        + instance.building_insurance_upfront
        + instance.building_pest_inspection
        + instance.plumbing_electrical_inspections
        + instance.independent_valuation
    )
    settlement_total = (
        deposit_balance
        + stamp_duty
        + instance.mortgage_fees
        + instance.conveyancing
        + instance.rates_adjustment
    )
    return OneOffCosts(
        engagement_total=instance.engagement_fee,
        exchange_total=exchange_total,
        unconditional_total=instance.unconditional_holding_deposit,
        deposit_balance=deposit_balance,
        stamp_duty=stamp_duty,
        settlement_total=settlement_total,
        post_settlement_total=instance.maintenance_allowance_post_settlement,
    )


# one-off purchase costs, in the order a cost edit trims them
FEE_FIELDS = (
    "engagement_fee",
    "conveyancing",
    "building_pest_inspection",
    "plumbing_electrical_inspections",
    "independent_valuation",
    "mortgage_fees",
    "building_insurance_upfront",
    "rates_adjustment",
    "maintenance_allowance_post_settlement",
)


def purchase_fees(instance: PropertyInstanceDetails) -> float:
    """One-off costs excluding deposit, stamp duty and LMI."""
    return sum(getattr(instance, name) for name in FEE_FIELDS)


# ---------------------------------------------------------------------
# Acquisition quote
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class AcquisitionQuote:
    purchase_price: float
    lvr: float
    base_loan: float
    lmi: float
    lmi_capitalized: bool
    loan_amount: float
    deposit: float
    stamp_duty: float
    fees: float
    land_tax: float
    one_off: OneOffCosts

    @property
    def lmi_upfront(self) -> float:
        return 0.0 if self.lmi_capitalized else self.lmi

    @property
    def total_cash_required(self) -> float:
        return self.one_off.total_cash_required + self.lmi_upfront


def stamp_duty_for(instance: PropertyInstanceDetails) -> float:
    if instance.stamp_duty_override is not None:
        return instance.stamp_duty_override
    return calculate_stamp_duty(instance.state, instance.purchase_price)


def land_tax_for(instance: PropertyInstanceDetails) -> float:
    if instance.land_tax_override is not None:
        return instance.land_tax_override
    if instance.land_value is None:
        return 0.0
    return calculate_land_tax(instance.state, instance.land_value)


def quote_acquisition(instance: PropertyInstanceDetails) -> AcquisitionQuote:
    price = instance.purchase_price
    lvr = instance.lvr

    lmi = calculate_lmi(price, lvr, instance.lmi_waiver)
    base_loan = calculate_loan_amount(price, lvr, lmi, capitalize_lmi=False)
    loan_amount = calculate_loan_amount(price, lvr, lmi, capitalize_lmi=instance.capitalize_lmi)
    stamp_duty = stamp_duty_for(instance)
    deposit_balance = calculate_deposit_balance(
        price,
        lvr,
        instance.conditional_holding_deposit,
        instance.unconditional_holding_deposit,
    )
    one_off = calculate_one_off_costs(instance, stamp_duty, deposit_balance)

    return AcquisitionQuote(
        purchase_price=price,
        lvr=lvr,
        base_loan=base_loan,
        lmi=lmi,
        lmi_capitalized=instance.capitalize_lmi and lmi > 0,
        loan_amount=loan_amount,
        deposit=price - base_loan,
        stamp_duty=stamp_duty,
        fees=purchase_fees(instance),
        land_tax=land_tax_for(instance),
        one_off=one_off,
    )
