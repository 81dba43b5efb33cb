# src/blockplan/services/guardrails.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from blockplan.adapters.logging_utils import get_logger
from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.cascade import CascadeState
from blockplan.domain.cashflow import analyze_cashflow
from blockplan.domain.costs import AcquisitionQuote, quote_acquisition
from blockplan.domain.property import (
    PropertyExpenses,
    PropertyInstanceDetails,
    PropertyPurchase,
    expenses_for,
    to_purchase,
)

logger = get_logger(__name__)

ViolationType = Literal["deposit", "borrowing", "serviceability"]
Severity = Literal["error", "warning"]

# serviceability shortfalls up to this share of the price are only a warning
SERVICEABILITY_WARNING_SHARE = 0.02


def format_currency(value: float) -> str:
    v = abs(value)
    if v >= 1_000_000:
        return f"${v / 1_000_000:.1f}M"
    if v >= 1_000:
        return f"${round(v / 1_000)}K"
    return f"${round(v)}"


@dataclass(frozen=True)
class GuardrailViolation:
    type: ViolationType
    severity: Severity
    message: str
    shortfall: float        # positive amount needed to pass
    current_value: float
    required_value: float


@dataclass(frozen=True)
class CheckOutcome:
    passed: bool
    surplus: float


@dataclass(frozen=True)
class ValidationResult:
    deposit: CheckOutcome
    borrowing: CheckOutcome
    serviceability: CheckOutcome
    violations: tuple[GuardrailViolation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def can_override(self) -> bool:
        """Only warnings, no hard errors."""
        return bool(self.violations) and all(v.severity == "warning" for v in self.violations)

    def violation(self, kind: ViolationType) -> GuardrailViolation | None:
        return next((v for v in self.violations if v.type == kind), None)

    def most_severe_violation(self) -> GuardrailViolation | None:
        if not self.violations:
            return None
        errors = [v for v in self.violations if v.severity == "error"]
        pool = errors or list(self.violations)
        return max(pool, key=lambda v: v.shortfall)

    def summary(self) -> str:
        if self.is_valid:
            return "All tests pass"
        n_err = sum(1 for v in self.violations if v.severity == "error")
        n_warn = len(self.violations) - n_err
        parts = []
        if n_err:
            parts.append(f"{n_err} constraint{'s' if n_err > 1 else ''} violated")
        if n_warn:
            parts.append(f"{n_warn} warning{'s' if n_warn > 1 else ''}")
        return ", ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "can_override": self.can_override,
            "summary": self.summary(),
            "tests": {
                "deposit": {"pass": self.deposit.passed, "surplus": self.deposit.surplus},
                "borrowing": {"pass": self.borrowing.passed, "surplus": self.borrowing.surplus},
                "serviceability": {
                    "pass": self.serviceability.passed,
                    "surplus": self.serviceability.surplus,
                },
            },
            "violations": [
                {
                    "type": v.type,
                    "severity": v.severity,
                    "message": v.message,
                    "shortfall": v.shortfall,
                    "current_value": v.current_value,
                    "required_value": v.required_value,
                }
                for v in self.violations
            ],
        }


# ---------------------------------------------------------------------
# Serviceability
# ---------------------------------------------------------------------

def serviceability_surplus(
    purchase: PropertyPurchase,
    expenses: PropertyExpenses,
    assumptions: EconomicAssumptions,
) -> float:
    """
    First-period net cashflow with debt assessed at rate + buffer, plus any
    base serviceability income the client brings. Negative means a shortfall.
    """
    rate = purchase.interest_rate if purchase.interest_rate is not None else assumptions.interest_rate
    assessed = purchase.model_copy(update={"interest_rate": rate + assumptions.serviceability_buffer})
    analysis = analyze_cashflow(
        assessed,
        assessed.year,
        assumptions.growth_curve,
        expenses,
        assumptions.interest_rate,
        assumptions.loan_term_years,
    )
    return assumptions.base_serviceability_income + analysis.net_cashflow


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------

def validate_purchase(
    purchase: PropertyPurchase,
    total_cash_required: float,
    state: CascadeState,
    assumptions: EconomicAssumptions,
    expenses: PropertyExpenses | None = None,
) -> ValidationResult:
    """
    Run the deposit, borrowing and serviceability tests for one prospective
    purchase against the cascade state immediately before it.

    All three tests always run; a failure is returned as a violation, never
    raised.
    """
    expenses = expenses or assumptions.expenses
    violations: list[GuardrailViolation] = []

    # 1) Deposit: funds on hand must cover every cash cost of the purchase
    deposit_surplus = state.available_funds - total_cash_required
    deposit_pass = deposit_surplus >= 0
    if not deposit_pass:
        shortfall = -deposit_surplus
        violations.append(
            GuardrailViolation(
                type="deposit",
                severity="error",
                message=(
                    f"Insufficient funds. Need {format_currency(total_cash_required)}, "
                    f"have {format_currency(state.available_funds)}. "
                    f"Shortfall: {format_currency(shortfall)}"
                ),
                shortfall=shortfall,
                current_value=state.available_funds,
                required_value=total_cash_required,
            )
        )

    # 2) Borrowing: the new loan must fit the remaining capacity
    borrowing_surplus = state.borrowing_capacity - purchase.loan_amount
    borrowing_pass = borrowing_surplus >= 0
    if not borrowing_pass:
        shortfall = -borrowing_surplus
        violations.append(
            GuardrailViolation(
                type="borrowing",
                severity="error",
                message=(
                    f"Insufficient borrowing capacity. Need {format_currency(purchase.loan_amount)}, "
                    f"capacity exceeded by {format_currency(shortfall)}"
                ),
                shortfall=shortfall,
                current_value=state.borrowing_capacity,
                required_value=purchase.loan_amount,
            )
        )

    # 3) Serviceability: assessed cashflow must not go negative
    service_surplus = serviceability_surplus(purchase, expenses, assumptions)
    service_pass = service_surplus >= 0
    if not service_pass:
        shortfall = -service_surplus
        severity: Severity = (
            "error" if shortfall > purchase.cost * SERVICEABILITY_WARNING_SHARE else "warning"
        )
        message = (
            f"Serviceability test fails significantly. Annual shortfall: {format_currency(shortfall)}"
            if severity == "error"
            else f"Serviceability test is tight. Annual shortfall: {format_currency(shortfall)}"
        )
        violations.append(
            GuardrailViolation(
                type="serviceability",
                severity=severity,
                message=message,
                shortfall=shortfall,
                current_value=service_surplus,
                required_value=0.0,
            )
        )

    result = ValidationResult(
        deposit=CheckOutcome(deposit_pass, deposit_surplus),
        borrowing=CheckOutcome(borrowing_pass, borrowing_surplus),
        serviceability=CheckOutcome(service_pass, service_surplus),
        violations=tuple(violations),
    )

    if violations:
        logger.info(
            "purchase_guardrail_violations",
            extra={
                "context": {
                    "title": purchase.title,
                    "year": purchase.year,
                    "violations": [(v.type, v.severity, v.shortfall) for v in violations],
                }
            },
        )
    return result


# ---------------------------------------------------------------------
# Instance-level helpers
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class InstanceAssessment:
    quote: AcquisitionQuote
    purchase: PropertyPurchase
    expenses: PropertyExpenses


def assess_instance(
    instance: PropertyInstanceDetails,
    year: float,
    title: str = "",
) -> InstanceAssessment:
    """Quote an editable property block and turn it into an engine purchase."""
    quote = quote_acquisition(instance)
    purchase = to_purchase(
        instance,
        year=year,
        loan_amount=quote.loan_amount,
        deposit_required=quote.deposit,
        title=title,
    )
    return InstanceAssessment(
        quote=quote,
        purchase=purchase,
        expenses=expenses_for(instance, land_tax=quote.land_tax),
    )


def validate_instance(
    instance: PropertyInstanceDetails,
    state: CascadeState,
    assumptions: EconomicAssumptions,
    year: float,
    title: str = "",
) -> ValidationResult:
    assessed = assess_instance(instance, year, title)
    return validate_purchase(
        assessed.purchase,
        assessed.quote.total_cash_required,
        state,
        assumptions,
        assessed.expenses,
    )
