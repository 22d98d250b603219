from decimal import Decimal

import pytest

from estimator.core.exceptions import ErrorCode, MissingRateError
from estimator.schemas.rules import WeldRateTable
from estimator.services.weld_cost_calculator import (
    billed_feet, compute_weld_breakdown, compute_weld_cost, weld_passes
)


def rates(**mapping):
    return WeldRateTable.model_validate(mapping)


def test_worked_example_three_sixteenths_plate():
    breakdown = compute_weld_breakdown("0.1875", "50", "A36", rates(A36="5.00"))
    assert breakdown.passes == 2
    assert breakdown.length_feet == 5
    assert breakdown.cost == Decimal("50.00")


def test_worked_example_three_eighths_plate():
    breakdown = compute_weld_breakdown("0.375", "12", "A36", rates(A36="4.00"))
    assert breakdown.passes == 3
    assert breakdown.length_feet == 1
    assert breakdown.cost == Decimal("12.00")


def test_float_inputs_do_not_drift():
    assert compute_weld_cost(0.1875, 50, "A36", rates(A36=5.0)) == Decimal("50")


@pytest.mark.parametrize("inches, feet", [("1", 1), ("12", 1), ("12.01", 2), ("50", 5), ("48", 4)])
def test_seam_length_rounds_up_to_whole_feet(inches, feet):
    assert billed_feet(inches) == feet


@pytest.mark.parametrize("thickness, passes", [("0.125", 1), ("0.126", 2), ("0.25", 2), ("0.5", 4), ("0.01", 1)])
def test_passes_round_up_per_eighth_inch(thickness, passes):
    assert weld_passes(thickness) == passes


def test_cost_is_monotonic_in_thickness_and_length(weld_rates):
    thicknesses = [Decimal(n) / 64 for n in range(1, 65)]
    lengths = [Decimal(n) for n in range(1, 121, 7)]
    for length in lengths:
        costs = [compute_weld_cost(t, length, "A36", weld_rates) for t in thicknesses]
        assert costs == sorted(costs)
    for thickness in thicknesses[::8]:
        costs = [compute_weld_cost(thickness, length, "A36", weld_rates) for length in lengths]
        assert costs == sorted(costs)


def test_grade_rate_then_default(weld_rates):
    assert compute_weld_breakdown("0.125", "12", "304 S/S", weld_rates).rate == Decimal("8.50")
    assert compute_weld_breakdown("0.125", "12", "AR400", weld_rates).rate == Decimal("5.00")
    assert compute_weld_breakdown("0.125", "12", None, weld_rates).rate == Decimal("5.00")


def test_missing_rate_without_default_raises():
    with pytest.raises(MissingRateError) as exc_info:
        compute_weld_cost("0.25", "24", "AR400", rates(A36="4.00"))
    assert exc_info.value.material_grade == "AR400"
    assert exc_info.value.code == ErrorCode.MISSING_WELD_RATE
    assert exc_info.value.context["configured_grades"] == ["A36"]
    assert "default" in exc_info.value.suggested_action


def test_partial_match_is_opt_in():
    table = rates(A36="4.00", default="6.00")
    assert compute_weld_breakdown("0.125", "12", "A36 HRPO", table).rate == Decimal("6.00")
    assert compute_weld_breakdown("0.125", "12", "A36 HRPO", table, partial_match=True).rate == Decimal("4.00")


def test_nothing_to_weld_costs_nothing(weld_rates):
    assert compute_weld_cost("0", "24", "A36", weld_rates) == 0
    assert compute_weld_cost("0.25", "0", "A36", weld_rates) == 0
