# src/blockplan/services/normalization.py
"""
Boundary parsing for the loosely-shaped records the surrounding app sends.

Everything tolerant lives here: camelCase vs snake_case keys, `yield` vs
`rentalYield`, numbers as strings, "6.5%" style percents. Once a record is
turned into a PropertyPurchase / PropertyInstanceDetails / InvestmentProfile
the engine works only with the strict shapes.
"""
from __future__ import annotations

import re
from typing import Any, get_args

from blockplan.domain.borrowing import calculate_borrowing_capacity
from blockplan.domain.growth import GrowthCurve
from blockplan.domain.profile import InvestmentProfile
from blockplan.domain.property import (
    AustralianState,
    LoanType,
    PropertyInstanceDetails,
    PropertyPurchase,
    rental_yield,
)

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")

# fields of PropertyInstanceDetails entered as percentages (80 means 80%)
_PERCENT_FIELDS = {"lvr", "interest_rate", "vacancy_rate", "property_management_percent"}
_BOOL_FIELDS = {"lmi_waiver", "capitalize_lmi"}
# closed-vocabulary text fields and the values each accepts
_TEXT_FIELDS = {
    "state": set(get_args(AustralianState)),
    "loan_product": set(get_args(LoanType)),
}
_OPTIONAL_NUMERIC_FIELDS = {
    "valuation_at_purchase",
    "land_value",
    "land_tax_override",
    "stamp_duty_override",
}

# keys the app uses that don't snake-case onto our field names
_INSTANCE_ALIASES = {
    "capitalise_lmi": "capitalize_lmi",
    "lmi_capitalized": "capitalize_lmi",
    "loan_type": "loan_product",
    "price": "purchase_price",
    "rent": "rent_per_week",
}


def _snake(key: str) -> str:
    return _CAMEL_RE.sub(r"_\1", key).lower()


def _to_num(val: Any, field_name: str) -> float:
    """
    Coerce values like:
      - 250000
      - "250000"
      - "6.5"
      - "6.5%"
      - "$450,000"
    into float.
    """
    if val is None:
        raise ValueError(f"Missing required numeric field: {field_name}")
    if isinstance(val, bool):
        raise ValueError(f"Invalid type for {field_name}: {type(val)}")
    if isinstance(val, (int, float)):
        return float(val)
    if isinstance(val, str):
        s = val.strip().replace(",", "").replace("$", "")
        if s.endswith("%"):
            # strip '%' but leave normalization decision to caller
            s = s[:-1]
        try:
            return float(s)
        except ValueError as err:
            raise ValueError(f"Invalid number for {field_name}: {val!r}") from err
    raise ValueError(f"Invalid type for {field_name}: {type(val)}")


def _to_num_optional(val: Any) -> float | None:
    """
    Lenient converter for optional numeric fields.
    Returns None when missing/blank.
    """
    if val is None:
        return None
    if isinstance(val, str) and not val.strip():
        return None
    return _to_num(val, "optional field")


def _to_bool(val: Any) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(val)


def _as_fraction(v: float) -> float:
    """0.065 stays 0.065; 6.5 becomes 0.065."""
    return v / 100.0 if v > 1.0 else v


def _as_percent(v: float) -> float:
    """80 stays 80; 0.8 becomes 80."""
    return v * 100.0 if 0.0 < v < 1.0 else v


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in raw and raw[k] is not None:
            return raw[k]
    return None


def normalize_growth_curve(raw: Any) -> GrowthCurve | None:
    """
    Accepts a GrowthCurve, a dict keyed year1/years2to3/year4/year5plus
    (or the `growthYear1` style used by the assumptions screen), or None.
    """
    if raw is None:
        return None
    if isinstance(raw, GrowthCurve):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid growth curve: {raw!r}")

    tiers = {}
    for tier in ("year1", "years2to3", "year4", "year5plus"):
        cap = tier[0].upper() + tier[1:]
        val = _pick(raw, tier, f"growth{cap}", f"growth_{tier}")
        if val is None:
            raise ValueError(f"Missing growth curve tier: {tier}")
        tiers[tier] = _to_num(val, tier)
    return GrowthCurve(**tiers)


def normalize_purchase(raw: dict[str, Any]) -> PropertyPurchase:
    """
    Map a loosely-typed purchase / timeline record into a PropertyPurchase.

    Required: a purchase time (`year` / `affordableYear`) and a price
    (`cost` / `purchasePrice`). Loan and deposit are derived from `lvr`
    when not given explicitly; rental yield from `rentPerWeek` when no
    yield field is present.
    """
    year = _to_num(_pick(raw, "year", "affordableYear", "affordable_year"), "year")
    cost = _to_num(_pick(raw, "cost", "purchasePrice", "purchase_price", "price"), "cost")

    loan_raw = _pick(raw, "loanAmount", "loan_amount")
    deposit_raw = _pick(raw, "depositRequired", "deposit_required", "deposit")
    lvr_raw = _pick(raw, "lvr", "LVR")
    if loan_raw is not None:
        loan_amount = _to_num(loan_raw, "loanAmount")
    elif lvr_raw is not None:
        loan_amount = cost * _as_percent(_to_num(lvr_raw, "lvr")) / 100.0
    elif deposit_raw is not None:
        loan_amount = cost - _to_num(deposit_raw, "depositRequired")
    else:
        raise ValueError("Missing required field: loanAmount (or lvr / depositRequired)")
    deposit = _to_num(deposit_raw, "depositRequired") if deposit_raw is not None else cost - loan_amount

    yield_raw = _pick(raw, "rentalYield", "rental_yield", "yield")
    rent_raw = _pick(raw, "rentPerWeek", "rent_per_week")
    if yield_raw is not None:
        ry = _as_fraction(_to_num(yield_raw, "rentalYield"))
    elif rent_raw is not None:
        ry = rental_yield(_to_num(rent_raw, "rentPerWeek"), cost)
    else:
        raise ValueError("Missing required field: rentalYield (or rentPerWeek)")

    growth_raw = _pick(raw, "growthRate", "growth_rate", "growth")
    rate_raw = _pick(raw, "interestRate", "interest_rate")
    loan_type = str(_pick(raw, "loanType", "loan_type", "loanProduct") or "IO").upper()
    if loan_type not in get_args(LoanType):
        raise ValueError(f"Invalid loanType: {loan_type}")

    return PropertyPurchase(
        title=str(_pick(raw, "title", "name") or ""),
        year=year,
        cost=cost,
        loan_amount=loan_amount,
        deposit_required=deposit,
        rental_yield=ry,
        growth_rate=_as_fraction(_to_num(growth_raw, "growthRate")) if growth_raw is not None else None,
        growth_curve=normalize_growth_curve(_pick(raw, "growthCurve", "growth_curve")),
        interest_rate=_as_fraction(_to_num(rate_raw, "interestRate")) if rate_raw is not None else None,
        loan_type=loan_type,
    )


def normalize_instance_fields(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Turn an app-side partial instance record into a dict of
    PropertyInstanceDetails field updates. Unknown keys are dropped.
    """
    known = set(PropertyInstanceDetails.model_fields)
    cleaned: dict[str, Any] = {}
    for key, val in raw.items():
        name = _snake(key)
        name = _INSTANCE_ALIASES.get(name, name)
        if name not in known:
            continue

        if name == "growth_curve":
            cleaned[name] = normalize_growth_curve(val)
        elif name in _TEXT_FIELDS:
            text = str(val).strip().upper()
            if text not in _TEXT_FIELDS[name]:
                raise ValueError(f"Invalid {name}: {val!r}")
            cleaned[name] = text
        elif name in _BOOL_FIELDS:
            cleaned[name] = _to_bool(val)
        elif name in _OPTIONAL_NUMERIC_FIELDS:
            cleaned[name] = _to_num_optional(val)
        elif name == "loan_term":
            try:
                cleaned[name] = int(_to_num(val, name))
            except ValueError as err:
                raise ValueError("Invalid loan_term") from err
        elif name in _PERCENT_FIELDS:
            cleaned[name] = _as_percent(_to_num(val, name))
        else:
            cleaned[name] = _to_num(val, name)
    return cleaned


def normalize_instance(
    raw: dict[str, Any],
    base: PropertyInstanceDetails | None = None,
) -> PropertyInstanceDetails:
    base = base or PropertyInstanceDetails()
    return base.with_changes(**normalize_instance_fields(raw))


def normalize_profile(raw: dict[str, Any]) -> InvestmentProfile:
    """
    The profile store sends either a borrowing capacity directly or the
    affordable repayment it was derived from.
    """
    capacity_raw = _pick(raw, "borrowingCapacity", "borrowing_capacity")
    if capacity_raw is not None:
        capacity = _to_num(capacity_raw, "borrowingCapacity")
    else:
        repayment = _pick(raw, "affordableRepayment", "affordable_repayment")
        if repayment is None:
            raise ValueError("Missing required field: borrowingCapacity (or affordableRepayment)")
        capacity = calculate_borrowing_capacity(
            affordable_repayment=_to_num(repayment, "affordableRepayment"),
            interest_rate=_as_percent(_to_num(_pick(raw, "interestRate", "interest_rate") or 6.5, "interestRate")),
            loan_term_years=int(_to_num(_pick(raw, "loanTermYears", "loan_term_years") or 30, "loanTermYears")),
            repayment_frequency=_pick(raw, "repaymentFrequency", "repayment_frequency") or "monthly",
        ).borrowing_capacity

    def _optional(*keys: str) -> float | None:
        return _to_num_optional(_pick(raw, *keys))

    release = _optional("equityReleaseFactor", "equity_release_factor")
    return InvestmentProfile(
        deposit_pool=_to_num(_pick(raw, "depositPool", "deposit_pool") or 0.0, "depositPool"),
        borrowing_capacity=capacity,
        portfolio_value=_optional("portfolioValue", "portfolio_value", "existingPortfolioValue") or 0.0,
        current_debt=_optional("currentDebt", "current_debt", "existingDebt") or 0.0,
        equity_goal=_optional("equityGoal", "equity_goal"),
        cashflow_goal=_optional("cashflowGoal", "cashflow_goal"),
        timeline_years=int(_to_num(_pick(raw, "timelineYears", "timeline_years") or 15, "timelineYears")),
        growth_curve=normalize_growth_curve(_pick(raw, "growthCurve", "growth_curve")),
        equity_release_factor=_as_fraction(release) if release is not None else None,
    )
