# tests/test_guardrails.py
import pytest

from blockplan.domain.assumptions import EconomicAssumptions
from blockplan.domain.cascade import CascadeState
from blockplan.services.guardrails import (
    format_currency,
    validate_instance,
    validate_purchase,
)

from fixtures.portfolios import (
    example_purchase,
    example_state,
    overreach_instance,
    rich_state,
    vic_instance,
)


def test_example_scenario_passes_deposit_and_borrowing():
    result = validate_purchase(example_purchase(), 69_000.0, example_state(), EconomicAssumptions())

    assert result.deposit.passed
    assert result.deposit.surplus == pytest.approx(151_000.0)
    assert result.borrowing.passed
    assert result.borrowing.surplus == pytest.approx(600_000.0)
    assert result.violation("deposit") is None
    assert result.violation("borrowing") is None


def test_overreach_fails_every_test_independently():
    result = validate_instance(overreach_instance(), example_state(), EconomicAssumptions(), 2025.0)

    assert not result.is_valid
    assert not result.can_override
    assert {v.type for v in result.violations} == {"deposit", "borrowing", "serviceability"}
    assert all(v.shortfall > 0 for v in result.violations)

    deposit = result.violation("deposit")
    assert deposit.shortfall == pytest.approx(3_070.0)
    assert deposit.required_value == pytest.approx(223_070.0)

    borrowing = result.violation("borrowing")
    assert borrowing.shortfall == pytest.approx(916_500.0)
    assert borrowing.required_value == pytest.approx(1_966_500.0)

    service = result.violation("serviceability")
    # 10,400 rent - 127,822.50 interest - 7,486.40 expenses
    assert service.shortfall == pytest.approx(124_908.9)
    assert service.severity == "error"

    assert result.most_severe_violation() is borrowing
    assert result.summary() == "3 constraints violated"


def test_small_serviceability_shortfall_is_a_warning():
    result = validate_instance(vic_instance(), rich_state(), EconomicAssumptions(), 2025.0)

    assert result.deposit.passed and result.borrowing.passed
    service = result.violation("serviceability")
    assert service.shortfall == pytest.approx(3_659.2)
    assert service.severity == "warning"
    assert result.can_override
    assert result.summary() == "1 warning"


def test_serviceability_buffer_and_base_income():
    buffered = validate_instance(
        vic_instance(), rich_state(), EconomicAssumptions(serviceability_buffer=0.01), 2025.0
    )
    assert buffered.violation("serviceability").shortfall == pytest.approx(7_659.2)

    supported = validate_instance(
        vic_instance(), rich_state(), EconomicAssumptions(base_serviceability_income=5_000.0), 2025.0
    )
    assert supported.is_valid
    assert supported.serviceability.surplus == pytest.approx(1_340.8)


def test_boundary_surplus_zero_passes():
    result = validate_purchase(
        example_purchase(),
        220_000.0,
        CascadeState(available_funds=220_000.0, borrowing_capacity=450_000.0),
        EconomicAssumptions(),
    )
    assert result.deposit.passed and result.deposit.surplus == 0.0
    assert result.borrowing.passed and result.borrowing.surplus == 0.0


def test_to_dict_shape():
    data = validate_instance(overreach_instance(), example_state(), EconomicAssumptions(), 2025.0).to_dict()

    assert data["is_valid"] is False
    assert set(data["tests"]) == {"deposit", "borrowing", "serviceability"}
    assert data["tests"]["deposit"]["pass"] is False
    assert len(data["violations"]) == 3


@pytest.mark.parametrize(
    "value, expected",
    [(950.0, "$950"), (3_070.0, "$3K"), (151_000.0, "$151K"), (1_966_500.0, "$2.0M"), (-3_070.0, "$3K")],
)
def test_format_currency(value, expected):
    assert format_currency(value) == expected
