# src/blockplan/services/suggested_fixes.py
"""
Inverse solvers that turn a guardrail violation into a concrete field change.

Every solver works from the *live* instance (with whatever adjustments the
user has already made), never from the template values. Fixes are advisory:
fields are shared across tests, so the validator has to run again after a
fix is applied.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, Literal

from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.cascade import CascadeState
from blockplan.domain.cashflow import annual_mortgage_payment
from blockplan.domain.costs import FEE_FIELDS, lmi_rate, quote_acquisition
from blockplan.domain.property import PropertyInstanceDetails
from blockplan.services.guardrails import (
    GuardrailViolation,
    assess_instance,
    format_currency,
    serviceability_surplus,
)

ActionType = Literal["adjustField", "editCosts", "capitalizeLmi"]

RATE_INCREMENT = 0.05   # percentage points
_BISECT_STEPS = 60


@dataclass(frozen=True)
class SuggestedFix:
    field: str
    current_value: float
    suggested_value: float
    explanation: str
    action_type: ActionType
    violation_type: str

    @property
    def change(self) -> float:
        return abs(self.suggested_value - self.current_value)


# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------

def _floor_to(value: float, increment: float) -> float:
    return math.floor(value / increment) * increment


def _ceil_to(value: float, increment: float) -> float:
    return math.ceil(value / increment) * increment


def _max_satisfying(ok: Callable[[float], bool], lo: float, hi: float) -> float | None:
    """
    Largest x in [lo, hi] with ok(x), for a predicate that holds below some
    threshold and fails above it. None if ok(lo) is already false.
    """
    if not ok(lo):
        return None
    if ok(hi):
        return hi
    for _ in range(_BISECT_STEPS):
        mid = (lo + hi) / 2.0
        if ok(mid):
            lo = mid
        else:
            hi = mid
    return lo


def _capitalized_lmi_rate(instance: PropertyInstanceDetails, lvr: float) -> float:
    if instance.lmi_waiver or not instance.capitalize_lmi:
        return 0.0
    return lmi_rate(lvr)


def _loan_for(instance: PropertyInstanceDetails, price: float, lvr: float) -> float:
    return price * (lvr / 100.0) * (1.0 + _capitalized_lmi_rate(instance, lvr))


def _cash_required(instance: PropertyInstanceDetails) -> float:
    return quote_acquisition(instance).total_cash_required


def _assessed_rate(instance: PropertyInstanceDetails, assumptions: EconomicAssumptions) -> float:
    return instance.interest_rate / 100.0 + assumptions.serviceability_buffer


def _service_surplus(
    instance: PropertyInstanceDetails,
    assumptions: EconomicAssumptions,
    year: float,
) -> float:
    assessed = assess_instance(instance, year)
    return serviceability_surplus(assessed.purchase, assessed.expenses, assumptions)


# ---------------------------------------------------------------------
# deposit
# ---------------------------------------------------------------------

def deposit_fixes(
    instance: PropertyInstanceDetails,
    violation: GuardrailViolation,
    available_funds: float,
    assumptions: EconomicAssumptions,
) -> list[SuggestedFix]:
    fixes: list[SuggestedFix] = []
    price, lvr = instance.purchase_price, instance.lvr
    shortfall = violation.shortfall
    quote = quote_acquisition(instance)

    # 1) Lower the price: cash required rises monotonically with price
    def fits_at(p: float) -> bool:
        return _cash_required(instance.with_changes(purchase_price=p)) <= available_funds

    best = _max_satisfying(fits_at, 0.0, price)
    if best is not None:
        suggested = _floor_to(best, assumptions.price_increment)
        if assumptions.min_suggested_price <= suggested < price:
            fixes.append(
                SuggestedFix(
                    field="purchase_price",
                    current_value=price,
                    suggested_value=suggested,
                    explanation=(
                        f"Reduce purchase price to {format_currency(suggested)} "
                        "to meet deposit requirement"
                    ),
                    action_type="adjustField",
                    violation_type="deposit",
                )
            )

    # 2) Raise the LVR: smallest whole LVR up to the cap that fits
    start = math.floor(lvr) + 1
    for candidate in range(start, int(assumptions.max_lvr) + 1):
        if _cash_required(instance.with_changes(lvr=float(candidate))) <= available_funds:
            lmi_note = " (may require LMI above 80%)" if candidate > 80 and not instance.lmi_waiver else ""
            fixes.append(
                SuggestedFix(
                    field="lvr",
                    current_value=lvr,
                    suggested_value=float(candidate),
                    explanation=f"Increase LVR to {candidate}% to reduce deposit needed{lmi_note}",
                    action_type="adjustField",
                    violation_type="deposit",
                )
            )
            break

    # 3) Capitalise LMI: moves the premium from cash to debt
    if quote.lmi_upfront > 0:
        clears = quote.lmi_upfront >= shortfall
        fixes.append(
            SuggestedFix(
                field="lmi_upfront",
                current_value=quote.lmi_upfront,
                suggested_value=0.0,
                explanation=(
                    f"Capitalise LMI of {format_currency(quote.lmi_upfront)} into the loan"
                    + (" to clear the shortfall" if clears else " to reduce the shortfall")
                ),
                action_type="capitalizeLmi",
                violation_type="deposit",
            )
        )

    # 4) Trim one-off costs when they alone can cover the gap
    if 0 < shortfall <= quote.fees:
        fixes.append(
            SuggestedFix(
                field="one_off_costs",
                current_value=quote.fees,
                suggested_value=quote.fees - shortfall,
                explanation=(
                    f"Reduce one-off purchase costs by {format_currency(shortfall)} "
                    f"to {format_currency(quote.fees - shortfall)}"
                ),
                action_type="editCosts",
                violation_type="deposit",
            )
        )

    return fixes


# ---------------------------------------------------------------------
# borrowing
# ---------------------------------------------------------------------

def borrowing_fixes(
    instance: PropertyInstanceDetails,
    violation: GuardrailViolation,
    borrowing_capacity: float,
    assumptions: EconomicAssumptions,
) -> list[SuggestedFix]:
    fixes: list[SuggestedFix] = []
    price, lvr = instance.purchase_price, instance.lvr

    # 1) Lower the price: solve price * lvr * (1 + capitalised LMI) <= capacity
    loan_per_dollar = (lvr / 100.0) * (1.0 + _capitalized_lmi_rate(instance, lvr))
    if loan_per_dollar > 0 and borrowing_capacity > 0:
        suggested = _floor_to(borrowing_capacity / loan_per_dollar, assumptions.price_increment)
        if assumptions.min_suggested_price <= suggested < price:
            fixes.append(
                SuggestedFix(
                    field="purchase_price",
                    current_value=price,
                    suggested_value=suggested,
                    explanation=(
                        f"Reduce purchase price to {format_currency(suggested)} "
                        "to fit borrowing capacity"
                    ),
                    action_type="adjustField",
                    violation_type="borrowing",
                )
            )

    # 2) Lower the LVR (needs more deposit)
    if price > 0:
        candidate = math.floor(borrowing_capacity / price * 100.0)
        # a lower LVR can also drop the LMI tier, so walk down until it fits
        while candidate >= assumptions.min_lvr and _loan_for(instance, price, candidate) > borrowing_capacity:
            candidate -= 1
        if assumptions.min_lvr <= candidate < lvr:
            fixes.append(
                SuggestedFix(
                    field="lvr",
                    current_value=lvr,
                    suggested_value=float(candidate),
                    explanation=f"Reduce LVR to {candidate}% to reduce loan amount (requires more deposit)",
                    action_type="adjustField",
                    violation_type="borrowing",
                )
            )

    return fixes


# ---------------------------------------------------------------------
# serviceability
# ---------------------------------------------------------------------

def serviceability_fixes(
    instance: PropertyInstanceDetails,
    violation: GuardrailViolation,
    assumptions: EconomicAssumptions,
    year: float,
) -> list[SuggestedFix]:
    fixes: list[SuggestedFix] = []
    shortfall = abs(violation.shortfall)
    price, lvr, rent = instance.purchase_price, instance.lvr, instance.rent_per_week
    quote = quote_acquisition(instance)

    # 1) Raise rent: each extra $1/week nets 52 * (1 - management - vacancy)
    kept_share = 1.0 - instance.property_management_percent / 100.0 - instance.vacancy_rate / 100.0
    if kept_share > 0:
        suggested_rent = _ceil_to(rent + shortfall / (52.0 * kept_share), assumptions.rent_increment)
        if rent < suggested_rent <= rent * assumptions.max_rent_uplift:
            fixes.append(
                SuggestedFix(
                    field="rent_per_week",
                    current_value=rent,
                    suggested_value=suggested_rent,
                    explanation=f"Increase weekly rent to ${suggested_rent:,.0f}/week to improve serviceability",
                    action_type="adjustField",
                    violation_type="serviceability",
                )
            )

    # 2) Lower the interest rate assumption
    rate = instance.interest_rate
    loan = quote.loan_amount
    suggested_rate: float | None = None
    if loan > 0:
        if instance.loan_product == "IO":
            suggested_rate = rate - shortfall / loan * 100.0
        else:
            def ok(r: float) -> bool:
                return _service_surplus(instance.with_changes(interest_rate=r), assumptions, year) >= 0

            suggested_rate = _max_satisfying(ok, 0.0, rate)
    if suggested_rate is not None and suggested_rate >= 0:
        suggested_rate = round(_floor_to(suggested_rate, RATE_INCREMENT), 2)
        if 0 <= suggested_rate < rate:
            fixes.append(
                SuggestedFix(
                    field="interest_rate",
                    current_value=rate,
                    suggested_value=suggested_rate,
                    explanation=f"Serviceability passes at an interest rate of {suggested_rate:.2f}% or lower",
                    action_type="adjustField",
                    violation_type="serviceability",
                )
            )

    # 3) Lower the price: rent is fixed per week, so only debt service moves
    debt_per_loan_dollar = annual_mortgage_payment(
        1.0,
        _assessed_rate(instance, assumptions),
        instance.loan_product,
        assumptions.loan_term_years,
    )
    loan_per_dollar = (lvr / 100.0) * (1.0 + _capitalized_lmi_rate(instance, lvr))
    slope = debt_per_loan_dollar * loan_per_dollar
    if slope > 0:
        suggested = _floor_to(price - shortfall / slope, assumptions.price_increment)
        if assumptions.min_suggested_price <= suggested < price:
            fixes.append(
                SuggestedFix(
                    field="purchase_price",
                    current_value=price,
                    suggested_value=suggested,
                    explanation=(
                        f"Reduce purchase price to {format_currency(suggested)} "
                        "to lower loan servicing costs"
                    ),
                    action_type="adjustField",
                    violation_type="serviceability",
                )
            )

    # 4) Lower the LVR: smaller loan, smaller debt service
    if debt_per_loan_dollar > 0 and price > 0:
        target_loan = loan - shortfall / debt_per_loan_dollar
        candidate = math.floor(target_loan / price * 100.0)
        while candidate >= assumptions.min_lvr and _loan_for(instance, price, candidate) > target_loan:
            candidate -= 1
        if assumptions.min_lvr <= candidate < lvr:
            fixes.append(
                SuggestedFix(
                    field="lvr",
                    current_value=lvr,
                    suggested_value=float(candidate),
                    explanation=f"Reduce LVR to {candidate}% to reduce loan interest payments",
                    action_type="adjustField",
                    violation_type="serviceability",
                )
            )

    return fixes


# ---------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------

def _direction(fix: SuggestedFix) -> int:
    delta = fix.suggested_value - fix.current_value
    return (delta > 0) - (delta < 0)


def deduplicate_fixes(fixes: Iterable[SuggestedFix]) -> list[SuggestedFix]:
    """
    One fix per field and direction, keeping the larger change.

    Opposite moves on the same field (a deposit fix raising LVR, a
    serviceability fix lowering it) are both kept.
    """
    seen: dict[tuple[str, int], SuggestedFix] = {}
    for fix in fixes:
        key = (fix.field, _direction(fix))
        existing = seen.get(key)
        if existing is None or fix.change > existing.change:
            seen[key] = fix
    return list(seen.values())


def suggest_fixes(
    instance: PropertyInstanceDetails,
    violations: Iterable[GuardrailViolation],
    state: CascadeState,
    assumptions: EconomicAssumptions,
    year: float,
) -> list[SuggestedFix]:
    """
    Candidate adjustments for every violation, computed against the live
    instance values. Client-side inputs (funds, capacity) are never adjusted.
    """
    fixes: list[SuggestedFix] = []
    for violation in violations:
        if violation.type == "deposit":
            fixes.extend(deposit_fixes(instance, violation, state.available_funds, assumptions))
        elif violation.type == "borrowing":
            fixes.extend(borrowing_fixes(instance, violation, state.borrowing_capacity, assumptions))
        elif violation.type == "serviceability":
            fixes.extend(serviceability_fixes(instance, violation, assumptions, year))
    return deduplicate_fixes(fixes)


def apply_fix(instance: PropertyInstanceDetails, fix: SuggestedFix) -> PropertyInstanceDetails:
    """
    Apply a field-adjusting fix to an instance. Cost edits and LMI
    capitalisation map onto the instance fields they stand for.
    """
    if fix.action_type == "capitalizeLmi":
        return instance.with_changes(capitalize_lmi=True)
    if fix.action_type == "editCosts":
        # trim fee lines in FEE_FIELDS order until the reduction is covered
        remaining = fix.current_value - fix.suggested_value
        trimmed: dict[str, float] = {}
        for name in FEE_FIELDS:
            if remaining <= 0:
                break
            current = getattr(instance, name)
            cut = min(current, remaining)
            if cut > 0:
                trimmed[name] = current - cut
                remaining -= cut
        return instance.with_changes(**trimmed)
    return instance.with_changes(**{fix.field: fix.suggested_value})
