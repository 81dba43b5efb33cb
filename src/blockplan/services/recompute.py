# src/blockplan/services/recompute.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from blockplan.adapters.logging_utils import get_logger
from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.cascade import CascadeState, PurchaseEffect, transition
from blockplan.domain.cashflow import CashflowAnalysis, analyze_cashflow
from blockplan.domain.costs import AcquisitionQuote
from blockplan.domain.metrics import PropertyMetrics, purchase_metrics
from blockplan.domain.property import PropertyInstanceDetails, PropertyPurchase
from blockplan.services.guardrails import ValidationResult, assess_instance, validate_purchase
from blockplan.services.normalization import normalize_instance_fields
from blockplan.services.suggested_fixes import SuggestedFix, suggest_fixes

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecomputeResult:
    instance: PropertyInstanceDetails
    quote: AcquisitionQuote
    purchase: PropertyPurchase
    cashflow: CashflowAnalysis
    metrics: PropertyMetrics
    validation: ValidationResult
    fixes: list[SuggestedFix]
    next_state: CascadeState


def assumptions_for(
    instance: PropertyInstanceDetails,
    assumptions: EconomicAssumptions,
) -> EconomicAssumptions:
    """The instance's own loan term wins over the scenario default."""
    if instance.loan_term == assumptions.loan_term_years:
        return assumptions
    return assumptions.model_copy(update={"loan_term_years": instance.loan_term})


def recompute(
    instance: PropertyInstanceDetails,
    state: CascadeState,
    changes: Mapping[str, Any] | None,
    assumptions: EconomicAssumptions,
    *,
    year: float,
    title: str = "",
) -> RecomputeResult:
    """
    Re-run the full pipeline after a field edit.

    `changes` may use the app's camelCase names and percent/fraction forms;
    they are merged onto the live instance before anything is computed, so
    validation and suggested fixes always see the edited values.
    """
    if changes:
        instance = instance.with_changes(**normalize_instance_fields(dict(changes)))

    assumptions = assumptions_for(instance, assumptions)
    assessed = assess_instance(instance, year, title)
    purchase = assessed.purchase

    validation = validate_purchase(
        purchase,
        assessed.quote.total_cash_required,
        state,
        assumptions,
        assessed.expenses,
    )
    fixes = suggest_fixes(instance, validation.violations, state, assumptions, year)

    cashflow = analyze_cashflow(
        purchase,
        year,
        assumptions.growth_curve,
        assessed.expenses,
        assumptions.interest_rate,
        assumptions.loan_term_years,
    )
    metrics = purchase_metrics(
        purchase,
        year,
        assumptions.growth_curve,
        assessed.expenses,
        assumptions.interest_rate,
        assumptions.loan_term_years,
    )
    effect = PurchaseEffect.from_purchase(
        purchase,
        assessed.quote.total_cash_required,
        assumptions.growth_curve,
        assessed.expenses,
        assumptions.interest_rate,
        assumptions.loan_term_years,
    )
    next_state = transition(state, effect, assumptions.equity_release_factor)

    logger.debug(
        "instance_recomputed",
        extra={
            "context": {
                "title": title,
                "year": year,
                "changed": sorted(changes or {}),
                "is_valid": validation.is_valid,
                "n_fixes": len(fixes),
            }
        },
    )
    return RecomputeResult(
        instance=instance,
        quote=assessed.quote,
        purchase=purchase,
        cashflow=cashflow,
        metrics=metrics,
        validation=validation,
        fixes=fixes,
        next_state=next_state,
    )
