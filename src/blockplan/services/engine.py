# src/blockplan/services/engine.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from blockplan.adapters.logging_utils import get_logger
from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.cascade import CascadeState, PurchaseEffect, initial_state, transition
from blockplan.domain.profile import InvestmentProfile
from blockplan.domain.property import PropertyInstanceDetails, PropertyPurchase
from blockplan.services.defaults import PropertyDefaults
from blockplan.services.guardrails import ValidationResult, assess_instance, validate_purchase
from blockplan.services.projections import GoalYears, YearProjection, find_goal_years, project_portfolio
from blockplan.services.recompute import RecomputeResult, assumptions_for, recompute
from blockplan.services.suggested_fixes import SuggestedFix, suggest_fixes

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlannedPurchase:
    """One step of a purchase sequence, as the timeline supplies it."""
    instance: PropertyInstanceDetails
    year: float
    title: str = ""


@dataclass(frozen=True)
class CascadeStep:
    title: str
    year: float
    state_before: CascadeState
    state_after: CascadeState
    purchase: PropertyPurchase
    total_cash_required: float
    validation: ValidationResult
    fixes: list[SuggestedFix] = field(default_factory=list)


@dataclass(frozen=True)
class CascadeReport:
    initial: CascadeState
    steps: list[CascadeStep]

    @property
    def final_state(self) -> CascadeState:
        return self.steps[-1].state_after if self.steps else self.initial

    @property
    def all_valid(self) -> bool:
        return all(s.validation.is_valid for s in self.steps)

    @property
    def purchases(self) -> list[PropertyPurchase]:
        return [s.purchase for s in self.steps]


@dataclass(frozen=True)
class ProjectionReport:
    years: list[YearProjection]
    goals: GoalYears


class PortfolioEngine:
    """
    Entry point for one scenario: an assumptions snapshot plus a defaults
    catalogue. Holds no mutable state; every call is a pure evaluation.
    """

    def __init__(
        self,
        assumptions: EconomicAssumptions | None = None,
        defaults: PropertyDefaults | None = None,
    ):
        self.assumptions = assumptions or EconomicAssumptions()
        self.defaults = defaults or PropertyDefaults()

    @classmethod
    def from_config(cls, cfg) -> "PortfolioEngine":
        return cls(assumptions=cfg.to_assumptions())

    def for_profile(self, profile: InvestmentProfile) -> EconomicAssumptions:
        """Profile-level growth curve and equity release override the scenario."""
        update: dict[str, Any] = {}
        if profile.growth_curve is not None:
            update["growth_curve"] = profile.growth_curve
        if profile.equity_release_factor is not None:
            update["equity_release_factor"] = profile.equity_release_factor
        return self.assumptions.model_copy(update=update) if update else self.assumptions

    # ------------------------------------------------------------------
    # single property
    # ------------------------------------------------------------------

    def instance_for(
        self,
        property_type: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> PropertyInstanceDetails:
        return self.defaults.instance_for(property_type, overrides)

    def recompute(
        self,
        instance: PropertyInstanceDetails,
        state: CascadeState,
        changes: Mapping[str, Any] | None = None,
        *,
        year: float,
        title: str = "",
    ) -> RecomputeResult:
        return recompute(instance, state, changes, self.assumptions, year=year, title=title)

    # ------------------------------------------------------------------
    # sequence
    # ------------------------------------------------------------------

    def run_cascade(
        self,
        profile: InvestmentProfile,
        plan: Sequence[PlannedPurchase],
    ) -> CascadeReport:
        """
        Validate each planned purchase against the state left by the ones
        before it, in the order given. A failing step is still applied so
        later steps show the knock-on effect.
        """
        base = self.for_profile(profile)
        start = initial_state(profile.deposit_pool, profile.borrowing_capacity)
        state = start
        steps: list[CascadeStep] = []

        for item in plan:
            assumptions = assumptions_for(item.instance, base)
            assessed = assess_instance(item.instance, item.year, item.title)
            cash = assessed.quote.total_cash_required

            validation = validate_purchase(assessed.purchase, cash, state, assumptions, assessed.expenses)
            fixes = suggest_fixes(item.instance, validation.violations, state, assumptions, item.year)

            effect = PurchaseEffect.from_purchase(
                assessed.purchase,
                cash,
                assumptions.growth_curve,
                assessed.expenses,
                assumptions.interest_rate,
                assumptions.loan_term_years,
            )
            nxt = transition(state, effect, assumptions.equity_release_factor)
            logger.debug(
                "cascade_transition",
                extra={
                    "context": {
                        "title": item.title,
                        "funds_before": state.available_funds,
                        "funds_after": nxt.available_funds,
                        "total_equity": nxt.total_equity,
                        "borrowing_capacity_after": nxt.borrowing_capacity,
                    }
                },
            )
            steps.append(
                CascadeStep(
                    title=item.title,
                    year=item.year,
                    state_before=state,
                    state_after=nxt,
                    purchase=assessed.purchase,
                    total_cash_required=cash,
                    validation=validation,
                    fixes=fixes,
                )
            )
            state = nxt

        report = CascadeReport(initial=start, steps=steps)
        logger.info(
            "cascade_run",
            extra={
                "context": {
                    "n_purchases": len(steps),
                    "all_valid": report.all_valid,
                    "final_funds": report.final_state.available_funds,
                    "final_capacity": report.final_state.borrowing_capacity,
                }
            },
        )
        return report

    def project(
        self,
        profile: InvestmentProfile,
        purchases: Sequence[PropertyPurchase],
    ) -> ProjectionReport:
        years = project_portfolio(purchases, profile, self.for_profile(profile))
        return ProjectionReport(
            years=years,
            goals=find_goal_years(years, profile.equity_goal, profile.cashflow_goal),
        )
