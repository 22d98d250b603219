# estimator/services/pricing_engine.py

import time
import logging
from typing import Callable, Dict, List, Optional

from estimator.core.exceptions import EstimatorError, raise_pricing_error
from estimator.schemas.estimate import Estimate, FeasibilityRequest, WeldCostRequest
from estimator.services import feasibility_evaluator, labor_minimum_resolver, pricing_aggregator
from estimator.services.pricing_models import (
    EstimateQuote, FeasibilityResult, RuleWarning, WeldCostBreakdown
)
from estimator.services.rule_tables import RuleSet
from estimator.services.weld_cost_calculator import compute_weld_breakdown

logger = logging.getLogger(__name__)

RuleSource = Callable[[], RuleSet]


class EstimatePricingEngine:
    """
    Single entry point for pricing an estimate.

    The engine never loads settings itself: every call takes one RuleSet
    snapshot from the injected rule source and uses it for the whole
    computation.
    """

    def __init__(self, rule_source: RuleSource):
        self.rule_source = rule_source
        logger.info("EstimatePricingEngine initialized")

    def price_estimate(self, estimate: Estimate, rule_set: Optional[RuleSet] = None) -> EstimateQuote:
        """
        Price an estimate end to end.

        Args:
            estimate: Parts and client tax details
            rule_set: Snapshot to use instead of asking the rule source

        Returns:
            EstimateQuote with totals, labor, feasibility, welds and warnings

        Raises:
            MissingRateError: a welded part's grade has no rate and no default exists
            PricingError: decimal arithmetic failed on the supplied values
        """
        start_time = time.time()
        rules = rule_set if rule_set is not None else self.rule_source()

        try:
            # 1. Feasibility per part
            feasibility: Dict[int, FeasibilityResult] = {}
            for index, part in enumerate(estimate.parts):
                result = feasibility_evaluator.evaluate_part(part, rules)
                if result is not None:
                    feasibility[index] = result

            # 2. Weld cost per part
            welds: Dict[int, WeldCostBreakdown] = {}
            for index, part in enumerate(estimate.parts):
                if part.weld_included_in_labor or not part.seam_length or not part.thickness:
                    continue
                breakdown = compute_weld_breakdown(
                    part.thickness, part.seam_length, part.material, rules.weld_rates
                )
                breakdown.quantity = part.quantity
                welds[index] = breakdown

            # 3. Labor minimum across all parts
            labor = labor_minimum_resolver.resolve(
                estimate.parts, rules.labor_minimums, minimum_override=estimate.minimum_override
            )

            # 4. Totals
            priced = pricing_aggregator.aggregate(
                estimate,
                labor,
                [weld.extended_cost for weld in welds.values()],
                rules.tax_settings,
            )
        except EstimatorError:
            raise
        except ArithmeticError as e:
            logger.error(f"Pricing calculation failed: {e}")
            raise_pricing_error(
                "Estimate could not be priced from the supplied values",
                technical_details=str(e),
                context={"part_count": len(estimate.parts)}
            )

        warnings: List[RuleWarning] = []
        for result in feasibility.values():
            warnings.extend(result.warnings)
        warnings.extend(labor.warnings)

        calculation_time = (time.time() - start_time) * 1000
        logger.info(
            f"Estimate priced: {len(estimate.parts)} part(s), total {priced.grand_total:.2f} "
            f"in {calculation_time:.2f}ms ({len(warnings)} warning(s))"
        )

        return EstimateQuote(
            priced=priced,
            labor=labor,
            feasibility=feasibility,
            welds=welds,
            warnings=warnings,
            rule_versions=dict(rules.versions),
        )

    def check_feasibility(self, request: FeasibilityRequest) -> FeasibilityResult:
        rules = self.rule_source()
        category = request.material_category or feasibility_evaluator.material_category_for_grade(request.material)
        try:
            requested = feasibility_evaluator.centerline_diameter(
                request.requested_diameter,
                request.outer_diameter,
                request.measure_type,
                request.measure_point,
            )
            return feasibility_evaluator.evaluate(
                request.outer_diameter, category, requested, rules.roll_limits, rules.mandrel_dies
            )
        except ArithmeticError as e:
            logger.error(f"Feasibility check failed: {e}")
            raise_pricing_error(
                "Feasibility could not be checked for the supplied diameters",
                technical_details=str(e),
                context={
                    "outer_diameter": str(request.outer_diameter),
                    "requested_diameter": str(request.requested_diameter),
                }
            )

    def weld_cost(self, request: WeldCostRequest) -> WeldCostBreakdown:
        rules = self.rule_source()
        try:
            return compute_weld_breakdown(
                request.thickness,
                request.seam_length,
                request.material,
                rules.weld_rates,
                partial_match=request.partial_match,
            )
        except ArithmeticError as e:
            logger.error(f"Weld cost calculation failed: {e}")
            raise_pricing_error(
                "Weld cost could not be calculated from the supplied values",
                technical_details=str(e),
                context={"thickness": str(request.thickness), "seam_length": str(request.seam_length)}
            )

