# src/blockplan/domain/property.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from blockplan.domain.errors import ConfigurationError
from blockplan.domain.growth import GrowthCurve

LoanType = Literal["IO", "PI"]

AustralianState = Literal["VIC", "NSW", "QLD", "SA", "WA", "TAS", "NT", "ACT"]


class PropertyPurchase(BaseModel):
    """
    A scheduled purchase, in the strict shape the engine works with.

    Rates here are fractions (0.05 means 5%); the growth curve stays in
    percent like every other GrowthCurve.
    """
    model_config = ConfigDict(frozen=True)

    title: str = ""
    year: float = Field(..., description="Purchase time, e.g. 2026.5 for 2026 H2")
    cost: float
    loan_amount: float
    deposit_required: float
    rental_yield: float = Field(..., description="Annual rent / value, e.g. 0.05")
    growth_rate: float | None = Field(default=None, description="Flat annual fraction, used when no curve")
    growth_curve: GrowthCurve | None = None
    interest_rate: float | None = Field(default=None, description="Annual fraction, e.g. 0.065")
    loan_type: LoanType = "IO"

    def with_loan_type(self, loan_type: LoanType) -> "PropertyPurchase":
        return self.model_copy(update={"loan_type": loan_type})

    def curve_or(self, default: GrowthCurve) -> GrowthCurve:
        if self.growth_curve is not None:
            return self.growth_curve
        if self.growth_rate is not None:
            return GrowthCurve.flat(self.growth_rate * 100.0)
        return default


class PropertyExpenses(BaseModel):
    """
    Annual operating expenses at purchase time, before inflation.
    """
    model_config = ConfigDict(frozen=True)

    management_fee_rate: float = 0.08   # of rental income
    council_rates: float = 2000.0       # annual
    insurance: float = 1500.0           # annual
    maintenance_rate: float = 0.01      # of current value
    maintenance_annual: float = 0.0     # fixed allowance on top of the rate
    vacancy_rate: float = 0.02          # of rental income
    strata_fees: float = 0.0            # annual
    land_tax: float = 0.0               # annual


class PropertyInstanceDetails(BaseModel):
    """
    Every user-editable field of one property block. Percent fields are in
    percent (lvr=80 means 80%), matching how they are entered.
    """
    model_config = ConfigDict(frozen=True)

    state: str = "VIC"
    purchase_price: float = 350_000.0
    valuation_at_purchase: float | None = None
    rent_per_week: float = 480.0
    growth_curve: GrowthCurve | None = None

    # Finance
    lvr: float = 80.0
    lmi_waiver: bool = False
    capitalize_lmi: bool = True
    loan_product: LoanType = "IO"
    interest_rate: float = 6.5
    loan_term: int = 30

    # Engagement / exchange / settlement
    engagement_fee: float = 8000.0
    conditional_holding_deposit: float = 7000.0
    building_insurance_upfront: float = 1400.0
    building_pest_inspection: float = 600.0
    plumbing_electrical_inspections: float = 0.0
    independent_valuation: float = 0.0
    unconditional_holding_deposit: float = 0.0
    mortgage_fees: float = 1000.0
    conveyancing: float = 2200.0
    rates_adjustment: float = 0.0
    maintenance_allowance_post_settlement: float = 0.0
    stamp_duty_override: float | None = None

    # Ongoing
    vacancy_rate: float = 0.0
    property_management_percent: float = 6.6
    building_insurance_annual: float = 350.0
    council_rates_water: float = 2000.0
    strata: float = 2700.0
    maintenance_allowance_annual: float = 1750.0
    land_value: float | None = None
    land_tax_override: float | None = None

    def with_changes(self, **changes: object) -> "PropertyInstanceDetails":
        return self.model_copy(update=changes)


def rental_yield(rent_per_week: float, purchase_price: float) -> float:
    """Gross yield as a fraction: rent * 52 / price."""
    if purchase_price == 0:
        raise ConfigurationError("cannot derive rental yield from a zero purchase price")
    return rent_per_week * 52.0 / purchase_price


def rent_for_yield(purchase_price: float, target_yield: float) -> float:
    """Weekly rent (whole dollars) that produces `target_yield` on `purchase_price`."""
    return float(round(purchase_price * target_yield / 52.0))


def expenses_for(instance: PropertyInstanceDetails, land_tax: float = 0.0) -> PropertyExpenses:
    return PropertyExpenses(
        management_fee_rate=instance.property_management_percent / 100.0,
        council_rates=instance.council_rates_water,
        insurance=instance.building_insurance_annual,
        maintenance_rate=0.0,
        maintenance_annual=instance.maintenance_allowance_annual,
        vacancy_rate=instance.vacancy_rate / 100.0,
        strata_fees=instance.strata,
        land_tax=land_tax,
    )


def to_purchase(
    instance: PropertyInstanceDetails,
    *,
    year: float,
    loan_amount: float,
    deposit_required: float,
    title: str = "",
) -> PropertyPurchase:
    return PropertyPurchase(
        title=title,
        year=year,
        cost=instance.purchase_price,
        loan_amount=loan_amount,
        deposit_required=deposit_required,
        rental_yield=rental_yield(instance.rent_per_week, instance.purchase_price),
        growth_curve=instance.growth_curve,
        interest_rate=instance.interest_rate / 100.0,
        loan_type=instance.loan_product,
    )
