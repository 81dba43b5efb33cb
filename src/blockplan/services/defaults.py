# src/blockplan/services/defaults.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

from blockplan.adapters.logging_utils import get_logger
from blockplan.domain.property import PropertyInstanceDetails
from blockplan.services.normalization import normalize_instance_fields

logger = get_logger(__name__)

# Used when a property type has no template
MINIMAL_TEMPLATE = PropertyInstanceDetails(valuation_at_purchase=350_000.0)


def _template(price: float, yield_pct: float, deposit_pct: float, **extra: Any) -> PropertyInstanceDetails:
    return MINIMAL_TEMPLATE.with_changes(
        purchase_price=price,
        valuation_at_purchase=price,
        rent_per_week=float(round(price * yield_pct / 100.0 / 52.0)),
        lvr=100.0 - deposit_pct,
        **extra,
    )


# price, gross yield %, deposit %
BUILTIN_TEMPLATES: Mapping[str, PropertyInstanceDetails] = MappingProxyType(
    {
        "units-apartments": _template(350_000, 7, 15),
        "villas-townhouses": _template(325_000, 7, 15),
        "houses-regional-focus": _template(350_000, 7, 15, strata=0.0),
        "granny-flats-add-on": _template(195_000, 9, 100, strata=0.0, lmi_waiver=True),
        "duplexes": _template(550_000, 7, 15, strata=0.0),
        "small-blocks-3-4-units": _template(900_000, 7, 20),
        "metro-houses": _template(800_000, 4, 15, strata=0.0),
        "larger-blocks-10-20-units": _template(3_500_000, 7, 45),
        "commercial-property": _template(3_000_000, 8, 40, lmi_waiver=True, strata=0.0),
    }
)

_CLAMPS = {
    "lvr": (0.0, 100.0),
    "interest_rate": (0.0, 20.0),
    "vacancy_rate": (0.0, 100.0),
}


def property_type_key(property_type: str) -> str:
    """
    "Units / Apartments" -> "units-apartments"
    "Small Blocks (3-4 units)" -> "small-blocks-3-4-units"
    """
    key = property_type.strip().lower()
    key = re.sub(r"\s*/\s*", "-", key)
    key = re.sub(r"\s+", "-", key)
    return re.sub(r"[()]", "", key)


def apply_overrides(
    defaults: PropertyInstanceDetails,
    overrides: Mapping[str, Any],
) -> PropertyInstanceDetails:
    """
    Merge user overrides (app-shaped keys are fine) into a template and
    clamp the fields that have hard ranges.
    """
    changes = normalize_instance_fields(dict(overrides))
    for name, (lo, hi) in _CLAMPS.items():
        if name not in changes:
            continue
        val = changes[name]
        if val < lo or val > hi:
            clamped = max(lo, min(hi, val))
            logger.warning(
                "instance_override_clamped",
                extra={"context": {"field": name, "value": val, "clamped": clamped}},
            )
            changes[name] = clamped
    return defaults.with_changes(**changes)


def validate_property_instance(instance: PropertyInstanceDetails) -> list[str]:
    errors: list[str] = []

    if instance.purchase_price <= 0:
        errors.append("Purchase price must be greater than 0")
    if instance.valuation_at_purchase is not None and instance.valuation_at_purchase <= 0:
        errors.append("Valuation must be greater than 0")
    if instance.rent_per_week < 0:
        errors.append("Rent cannot be negative")
    if instance.lvr < 0 or instance.lvr > 100:
        errors.append("LVR must be between 0 and 100")
    if instance.interest_rate < 0 or instance.interest_rate > 20:
        errors.append("Interest rate must be between 0 and 20")
    if instance.loan_term <= 0 or instance.loan_term > 50:
        errors.append("Loan term must be between 1 and 50 years")

    return errors


class PropertyDefaults:
    """
    Immutable catalogue of per-property-type templates.

    Pass one into the engine per scenario instead of reading a global table.
    """

    def __init__(self, templates: Mapping[str, PropertyInstanceDetails] | None = None):
        source = BUILTIN_TEMPLATES if templates is None else templates
        self._templates = MappingProxyType({property_type_key(k): v for k, v in source.items()})

    def keys(self) -> list[str]:
        return sorted(self._templates)

    def template_for(self, property_type: str) -> PropertyInstanceDetails:
        key = property_type_key(property_type)
        template = self._templates.get(key)
        if template is None:
            logger.warning(
                "property_defaults_missing",
                extra={"context": {"property_type": property_type, "key": key}},
            )
            return MINIMAL_TEMPLATE
        if template.valuation_at_purchase is None:
            return template.with_changes(valuation_at_purchase=template.purchase_price)
        return template

    def instance_for(
        self,
        property_type: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> PropertyInstanceDetails:
        return apply_overrides(self.template_for(property_type), overrides or {})
