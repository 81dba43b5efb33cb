# src/blockplan/api/http.py
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException

from blockplan.adapters.config import config
from blockplan.adapters.logging_utils import get_logger
from blockplan.domain.cascade import CascadeState
from blockplan.domain.property import PropertyInstanceDetails
from blockplan.services.engine import CascadeReport, PlannedPurchase, PortfolioEngine
from blockplan.services.guardrails import validate_purchase
from blockplan.services.normalization import normalize_instance, normalize_profile, normalize_purchase
from blockplan.services.recompute import RecomputeResult
from .schemas import (
    CascadeRequest,
    CascadeResponse,
    PlanItemIn,
    ProjectionRequest,
    ProjectionResponse,
    RecomputeRequest,
    RecomputeResponse,
    StateIn,
    ValidateRequest,
    ValidateResponse,
)

logger = get_logger(__name__)

app = FastAPI()

_engine = PortfolioEngine.from_config(config)


# -------------------------------------------------------------------
# request -> domain
# -------------------------------------------------------------------

def _state(payload: StateIn) -> CascadeState:
    return CascadeState(**payload.model_dump())


def _instance(property_type: str | None, raw: dict[str, Any]) -> PropertyInstanceDetails:
    base = _engine.defaults.template_for(property_type) if property_type else None
    return normalize_instance(raw, base=base)


def _plan_item(item: PlanItemIn) -> PlannedPurchase:
    return PlannedPurchase(
        instance=_instance(item.property_type, item.instance),
        year=item.year,
        title=item.title,
    )


# -------------------------------------------------------------------
# domain -> response
# -------------------------------------------------------------------

def _fix_dicts(fixes) -> list[dict[str, Any]]:
    return [asdict(f) for f in fixes]


def _recompute_dict(result: RecomputeResult) -> dict[str, Any]:
    quote = asdict(result.quote)
    quote["lmi_upfront"] = result.quote.lmi_upfront
    quote["total_cash_required"] = result.quote.total_cash_required
    return {
        "instance": result.instance.model_dump(),
        "quote": quote,
        "purchase": result.purchase.model_dump(),
        "cashflow": asdict(result.cashflow),
        "metrics": asdict(result.metrics),
        "validation": result.validation.to_dict(),
        "fixes": _fix_dicts(result.fixes),
        "next_state": asdict(result.next_state),
    }


def _cascade_dict(report: CascadeReport) -> dict[str, Any]:
    return {
        "all_valid": report.all_valid,
        "steps": [
            {
                "title": s.title,
                "year": s.year,
                "total_cash_required": s.total_cash_required,
                "loan_amount": s.purchase.loan_amount,
                "state_before": asdict(s.state_before),
                "state_after": asdict(s.state_after),
                "validation": s.validation.to_dict(),
                "fixes": _fix_dicts(s.fixes),
            }
            for s in report.steps
        ],
        "final_state": asdict(report.final_state),
    }


def _bad_request(path: str, err: ValueError) -> HTTPException:
    logger.warning("request_rejected", extra={"context": {"path": path, "error": str(err)}})
    return HTTPException(status_code=400, detail=str(err))


# -------------------------------------------------------------------
# endpoints
# -------------------------------------------------------------------

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": config.ENV}


@app.get("/property-types", response_model=list[str])
def property_types() -> list[str]:
    return _engine.defaults.keys()


@app.post("/recompute", response_model=RecomputeResponse)
def recompute_endpoint(payload: RecomputeRequest) -> RecomputeResponse:
    """
    Live recompute for one property block after a field edit.
    """
    try:
        result = _engine.recompute(
            _instance(payload.property_type, payload.instance),
            _state(payload.state),
            payload.changes,
            year=payload.year,
            title=payload.title,
        )
        return RecomputeResponse(**_recompute_dict(result))
    except ValueError as e:
        raise _bad_request("/recompute", e) from e


@app.post("/validate", response_model=ValidateResponse)
def validate_endpoint(payload: ValidateRequest) -> ValidateResponse:
    try:
        purchase = normalize_purchase(payload.purchase)
        result = validate_purchase(
            purchase,
            payload.total_cash_required,
            _state(payload.state),
            _engine.assumptions,
        )
        return ValidateResponse(**result.to_dict())
    except ValueError as e:
        raise _bad_request("/validate", e) from e


@app.post("/cascade", response_model=CascadeResponse)
def cascade_endpoint(payload: CascadeRequest) -> CascadeResponse:
    """
    Replay a purchase sequence in order, validating each step against the
    state the earlier steps left behind.
    """
    try:
        profile = normalize_profile(payload.profile)
        report = _engine.run_cascade(profile, [_plan_item(i) for i in payload.plan])
        return CascadeResponse(**_cascade_dict(report))
    except ValueError as e:
        raise _bad_request("/cascade", e) from e


@app.post("/projection", response_model=ProjectionResponse)
def projection_endpoint(payload: ProjectionRequest) -> ProjectionResponse:
    try:
        profile = normalize_profile(payload.profile)
        purchases = [normalize_purchase(p) for p in payload.purchases]
        report = _engine.project(profile, purchases)
    except ValueError as e:
        raise _bad_request("/projection", e) from e

    return ProjectionResponse(
        years=[
            {"year": y.year, "property_count": y.property_count, **asdict(y.metrics)}
            for y in report.years
        ],
        equity_goal_year=report.goals.equity_goal_year,
        cashflow_goal_year=report.goals.cashflow_goal_year,
    )
