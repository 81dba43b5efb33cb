# src/blockplan/domain/profile.py
from pydantic import BaseModel, ConfigDict, Field

from blockplan.domain.growth import GrowthCurve


class InvestmentProfile(BaseModel):
    """
    The client's starting position and goals, as read from the profile store.
    The engine never writes to it.
    """
    model_config = ConfigDict(frozen=True)

    deposit_pool: float = 0.0
    borrowing_capacity: float = 0.0
    portfolio_value: float = Field(default=0.0, description="Existing holdings at 2025")
    current_debt: float = 0.0
    equity_goal: float | None = None
    cashflow_goal: float | None = None
    timeline_years: int = 15
    growth_curve: GrowthCurve | None = None
    equity_release_factor: float | None = None
