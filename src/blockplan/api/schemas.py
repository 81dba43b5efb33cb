# src/blockplan/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# --------------------------------------------
# Shared pieces
# --------------------------------------------

class StateIn(BaseModel):
    """Cascade state before the purchase being evaluated."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    available_funds: float = Field(alias="availableFunds")
    borrowing_capacity: float = Field(alias="borrowingCapacity")
    portfolio_value: float = Field(default=0.0, alias="portfolioValue")
    total_debt: float = Field(default=0.0, alias="totalDebt")
    total_equity: float = Field(default=0.0, alias="totalEquity")


class PlanItemIn(BaseModel):
    """
    One purchase in a sequence. `instance` is the loose app-side record;
    it is layered over the template for `property_type` when one is given.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = ""
    year: float
    property_type: str | None = Field(default=None, alias="propertyType")
    instance: dict[str, Any] = Field(default_factory=dict)


# --------------------------------------------
# /recompute and /validate
# --------------------------------------------

class RecomputeRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = ""
    year: float
    property_type: str | None = Field(default=None, alias="propertyType")
    instance: dict[str, Any] = Field(default_factory=dict)
    changes: dict[str, Any] = Field(default_factory=dict)
    state: StateIn


class ValidateRequest(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    purchase: dict[str, Any]
    total_cash_required: float = Field(alias="totalCashRequired")
    state: StateIn


class RecomputeResponse(BaseModel):
    """Rich nested result; permissive so new fields don't break clients."""
    model_config = ConfigDict(extra="allow")


class ValidateResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    is_valid: bool
    can_override: bool
    summary: str


# --------------------------------------------
# /cascade and /projection
# --------------------------------------------

class CascadeRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    profile: dict[str, Any]
    plan: list[PlanItemIn] = Field(default_factory=list)


class CascadeResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    all_valid: bool
    steps: list[dict[str, Any]]
    final_state: dict[str, float]


class ProjectionRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    profile: dict[str, Any]
    purchases: list[dict[str, Any]] = Field(default_factory=list)


class ProjectionResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    years: list[dict[str, Any]]
    equity_goal_year: int | None = None
    cashflow_goal_year: int | None = None
