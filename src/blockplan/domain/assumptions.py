# src/blockplan/domain/assumptions.py
from pydantic import BaseModel, ConfigDict, Field

from blockplan.domain.growth import GrowthCurve
from blockplan.domain.property import PropertyExpenses


class EconomicAssumptions(BaseModel):
    """
    Immutable snapshot of every economic default the engine reads.
    Built once per scenario (or per request) and passed in explicitly.
    """
    model_config = ConfigDict(frozen=True)

    growth_curve: GrowthCurve = Field(default_factory=GrowthCurve)
    interest_rate: float = 0.065
    loan_term_years: int = 30
    expenses: PropertyExpenses = Field(default_factory=PropertyExpenses)

    # Cascade
    equity_release_factor: float = 0.0

    # Serviceability
    serviceability_buffer: float = 0.0
    base_serviceability_income: float = 0.0

    # Suggested fixes
    min_lvr: float = 50.0
    max_lvr: float = 95.0
    min_suggested_price: float = 100_000.0
    price_increment: float = 5_000.0
    rent_increment: float = 10.0
    max_rent_uplift: float = 1.5
