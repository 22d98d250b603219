from dataclasses import replace
from decimal import Decimal

import pytest

from estimator.core.exceptions import MissingRateError, PricingError
from estimator.schemas.estimate import Estimate, FeasibilityRequest, Part, WeldCostRequest
from estimator.schemas.rules import WeldRateTable
from estimator.services.pricing_engine import EstimatePricingEngine
from estimator.services.pricing_models import FeasibilityStatus, WarningKind


@pytest.fixture
def engine(rule_set):
    return EstimatePricingEngine(lambda: rule_set)


def test_price_estimate_end_to_end(engine):
    estimate = Estimate(
        parts=[
            Part(part_type="plate_roll", material="A36", thickness="3/16", width="12",
                 seam_length="50", labor_cost="40", material_cost="100"),
            Part(part_type="tube_roll", material="A500 Gr B", outer_diameter="2",
                 requested_diameter="18", labor_cost="30", quantity=2),
        ],
        custom_tax_rate="10",
    )
    quote = engine.price_estimate(estimate)

    # 40 + 30 x 2 = 100 labor, plate minimum 125 applies
    assert quote.labor.total_labor == Decimal("100")
    assert quote.labor.effective_labor == Decimal("125")
    # 2 passes x 5 ft x $5.00 default
    assert quote.welds[0].cost == Decimal("50.00")
    assert 1 not in quote.welds
    assert quote.priced.material_subtotal == Decimal("120")
    assert quote.priced.labor_total == Decimal("175")
    assert quote.priced.tax == Decimal("29.5")
    assert quote.priced.grand_total == Decimal("324.5")
    assert quote.feasibility[1].status == FeasibilityStatus.FEASIBLE
    assert 0 not in quote.feasibility


def test_weld_cost_is_extended_by_quantity(engine):
    part = Part(part_type="other", thickness="0.375", seam_length="12", quantity=3)
    quote = engine.price_estimate(Estimate(parts=[part], tax_status="exempt"))
    assert quote.welds[0].cost == Decimal("15.00")
    assert quote.welds[0].extended_cost == Decimal("45.00")
    assert quote.priced.weld_total == Decimal("45.00")


def test_weld_included_in_labor_is_not_billed_twice(engine):
    part = Part(part_type="other", thickness="0.375", seam_length="12", weld_included_in_labor=True)
    quote = engine.price_estimate(Estimate(parts=[part]))
    assert quote.welds == {}
    assert quote.priced.weld_total == 0


def test_missing_weld_rate_propagates(rule_set):
    no_rates = replace(rule_set, weld_rates=WeldRateTable())
    engine = EstimatePricingEngine(lambda: no_rates)
    part = Part(part_type="plate_roll", material="AR400", thickness="0.5", seam_length="24")
    with pytest.raises(MissingRateError):
        engine.price_estimate(Estimate(parts=[part]))


def test_warnings_are_collected(engine):
    parts = [
        Part(part_type="pipe_roll", outer_diameter="2.375", requested_diameter="30", labor_cost="10"),
    ]
    quote = engine.price_estimate(Estimate(parts=parts))
    kinds = [w.kind for w in quote.warnings]
    assert kinds == [WarningKind.AMBIGUOUS_RULE, WarningKind.AMBIGUOUS_RULE]
    assert quote.feasibility[0].min_diameter == Decimal("19.000")


def test_one_snapshot_per_computation(rule_set, mocker):
    source = mocker.Mock(return_value=rule_set)
    engine = EstimatePricingEngine(source)
    engine.price_estimate(Estimate(parts=[Part(part_type="plate_roll", thickness="0.25", labor_cost="10")]))
    assert source.call_count == 1


def test_explicit_rule_set_skips_source(rule_set, mocker):
    source = mocker.Mock()
    EstimatePricingEngine(source).price_estimate(Estimate(), rule_set=rule_set)
    source.assert_not_called()


def test_quote_to_dict_is_stable(engine):
    estimate = Estimate(parts=[Part(part_type="plate_roll", thickness="0.5", labor_cost="10.005")])
    assert engine.price_estimate(estimate).to_dict() == engine.price_estimate(estimate).to_dict()


def test_check_feasibility_converts_inside_measurement(engine):
    request = FeasibilityRequest(
        outer_diameter="2", material="DOM", requested_diameter="14",
        measure_type="diameter", measure_point="inside",
    )
    result = engine.check_feasibility(request)
    assert result.requested_diameter == Decimal("16")
    assert result.status == FeasibilityStatus.FEASIBLE


def test_weld_cost_helper(engine):
    result = engine.weld_cost(WeldCostRequest(thickness="0.1875", seam_length="50", material="A36"))
    assert result.cost == Decimal("50.00")


def test_check_feasibility_wraps_decimal_overflow(engine):
    request = FeasibilityRequest(outer_diameter="1e26", requested_diameter="10")
    with pytest.raises(PricingError) as exc_info:
        engine.check_feasibility(request)
    assert exc_info.value.context["outer_diameter"] == "1E+26"
