# tests/test_defaults.py
import pytest

from blockplan.domain.property import PropertyInstanceDetails
from blockplan.services.defaults import (
    BUILTIN_TEMPLATES,
    MINIMAL_TEMPLATE,
    PropertyDefaults,
    apply_overrides,
    property_type_key,
    validate_property_instance,
)


@pytest.mark.parametrize(
    "label, key",
    [
        ("Units / Apartments", "units-apartments"),
        ("Small Blocks (3-4 units)", "small-blocks-3-4-units"),
        ("  Metro Houses ", "metro-houses"),
    ],
)
def test_property_type_key(label, key):
    assert property_type_key(label) == key


def test_templates_are_consistent():
    for key, template in BUILTIN_TEMPLATES.items():
        assert validate_property_instance(template) == [], key
        assert template.valuation_at_purchase == template.purchase_price


def test_template_lookup_by_label():
    defaults = PropertyDefaults()
    units = defaults.template_for("Units / Apartments")
    assert units.purchase_price == 350_000.0
    assert units.lvr == 85.0
    # 7% gross yield
    assert units.rent_per_week == 471.0


def test_unknown_type_falls_back_to_minimal_template():
    assert PropertyDefaults().template_for("Castle") == MINIMAL_TEMPLATE


def test_custom_catalogue_is_used():
    only = PropertyDefaults({"Shed": PropertyInstanceDetails(purchase_price=50_000.0)})
    assert only.keys() == ["shed"]
    shed = only.template_for("shed")
    assert shed.valuation_at_purchase == 50_000.0


def test_overrides_are_clamped():
    inst = apply_overrides(MINIMAL_TEMPLATE, {"lvr": 120, "interestRate": "25%", "vacancyRate": -5})
    assert inst.lvr == 100.0
    assert inst.interest_rate == 20.0
    assert inst.vacancy_rate == 0.0


def test_instance_for_applies_overrides_to_template():
    inst = PropertyDefaults().instance_for("duplexes", {"rentPerWeek": 800})
    assert inst.purchase_price == 550_000.0
    assert inst.rent_per_week == 800.0
    assert inst.strata == 0.0


def test_validate_property_instance_reports_problems():
    bad = PropertyInstanceDetails(purchase_price=0.0, rent_per_week=-1.0, loan_term=0)
    errors = validate_property_instance(bad)
    assert "Purchase price must be greater than 0" in errors
    assert "Rent cannot be negative" in errors
    assert len(errors) == 3
