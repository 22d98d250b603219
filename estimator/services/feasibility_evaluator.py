# estimator/services/feasibility_evaluator.py

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from estimator.core.config import settings
from estimator.schemas.estimate import MeasurePoint, MeasureType, Part
from estimator.schemas.rules import MandrelDie, MaterialCategory, RollLimitRule
from estimator.services.pricing_models import (
    FeasibilityResult, FeasibilityStatus, RuleWarning, WarningKind
)
from estimator.services.rule_tables import RuleSet
from estimator.utils.dimension_helpers import Number, canonical_od, to_decimal

logger = logging.getLogger(__name__)

_STAINLESS_MARKERS = ("s/s", "stainless", "304", "316")
_ALUMINUM_MARKERS = ("alum", "6061", "5052", "6063", "3003")


def material_category_for_grade(grade: Optional[str]) -> MaterialCategory:
    """Infer the roll-limit category from a grade name such as '6061-T6 Alum'."""
    if not grade:
        return MaterialCategory.steel
    lowered = grade.lower()
    if any(marker in lowered for marker in _STAINLESS_MARKERS):
        return MaterialCategory.stainless
    if any(marker in lowered for marker in _ALUMINUM_MARKERS):
        return MaterialCategory.aluminum
    return MaterialCategory.steel


def centerline_diameter(
    value: Number,
    outer_diameter: Number,
    measure_type: MeasureType = MeasureType.diameter,
    measure_point: MeasurePoint = MeasurePoint.centerline,
) -> Decimal:
    """
    Convert a roll-to dimension taken at the inside, outside, or centerline of
    the tube into a centerline diameter.
    """
    diameter = to_decimal(value)
    od = to_decimal(outer_diameter)
    if measure_type == MeasureType.radius:
        diameter = diameter * 2
    if measure_point == MeasurePoint.inside:
        return diameter + od
    if measure_point == MeasurePoint.outside:
        return diameter - od
    return diameter


def default_min_diameter(outer_diameter: Decimal, category: MaterialCategory) -> Decimal:
    if category == MaterialCategory.aluminum:
        return outer_diameter * settings.DEFAULT_ALUMINUM_ROLL_MULTIPLIER
    return outer_diameter * settings.DEFAULT_STEEL_ROLL_MULTIPLIER


def select_roll_limit(
    outer_diameter: Decimal,
    category: MaterialCategory,
    roll_limits: Sequence[RollLimitRule],
) -> Optional[RollLimitRule]:
    """First rule for this OD in the part's own category, else the first 'all' rule."""
    fallback = None
    for rule in roll_limits:
        if canonical_od(rule.od) != outer_diameter:
            continue
        if rule.material_category == category:
            return rule
        if fallback is None and rule.material_category == MaterialCategory.all:
            fallback = rule
    return fallback


def _dies_for(outer_diameter: Decimal, mandrel_dies: Sequence[MandrelDie]) -> List[MandrelDie]:
    return [die for die in mandrel_dies if canonical_od(die.od) == outer_diameter]


def _inches(value: Decimal) -> str:
    return f"{value.normalize():f}\""


def evaluate(
    outer_diameter: Number,
    material_category: Optional[MaterialCategory],
    requested_diameter: Number,
    roll_limits: Sequence[RollLimitRule],
    mandrel_dies: Sequence[MandrelDie] = (),
) -> FeasibilityResult:
    """
    Decide whether a tube or pipe can be rolled to the requested centerline
    diameter.

    The OD is canonicalized before any lookup, so '2', 2.0 and '2.000' find
    the same rule but 2.001 does not. When no roll-limit rule covers the OD,
    the shop default of OD x 8 (steel, stainless) or OD x 12 (aluminum) is
    used and an AMBIGUOUS_RULE warning is attached.
    """
    od = canonical_od(outer_diameter)
    requested = to_decimal(requested_diameter)
    category = material_category or MaterialCategory.steel
    warnings: List[RuleWarning] = []

    rule = select_roll_limit(od, category, roll_limits)
    if rule is not None:
        min_diameter = rule.min_diameter
        logger.debug(f"Roll limit '{rule.label}' matched OD {od} ({category.value}): min {min_diameter}")
    else:
        min_diameter = default_min_diameter(od, category)
        logger.warning(f"No roll limit for OD {od} ({category.value}); using default minimum {min_diameter}")
        warnings.append(RuleWarning(
            kind=WarningKind.AMBIGUOUS_RULE,
            message=f"No roll limit configured for {_inches(od)} OD; using shop default of {_inches(min_diameter)}",
            context={"outer_diameter": od, "material_category": category, "min_diameter": min_diameter},
        ))

    if requested >= min_diameter:
        return FeasibilityResult(
            status=FeasibilityStatus.FEASIBLE,
            outer_diameter=od,
            requested_diameter=requested,
            min_diameter=min_diameter,
            rule=rule,
            message=f"Can roll {_inches(od)} OD to {_inches(requested)} centerline diameter",
            warnings=warnings,
        )

    od_dies = _dies_for(od, mandrel_dies)
    fitting = [die for die in od_dies if die.min_diameter <= requested]
    if fitting:
        die = fitting[0]
        return FeasibilityResult(
            status=FeasibilityStatus.FEASIBLE_WITH_MANDREL,
            outer_diameter=od,
            requested_diameter=requested,
            min_diameter=min_diameter,
            rule=rule,
            die=die,
            fitting_dies=fitting,
            message=f"Requires mandrel die {die.label or _inches(die.od)} (min {_inches(die.min_diameter)})",
            warnings=warnings,
        )

    smallest = min([min_diameter] + [die.min_diameter for die in od_dies])
    return FeasibilityResult(
        status=FeasibilityStatus.INFEASIBLE,
        outer_diameter=od,
        requested_diameter=requested,
        min_diameter=min_diameter,
        rule=rule,
        smallest_achievable=smallest,
        message=(
            f"Cannot roll {_inches(od)} OD to {_inches(requested)}; "
            f"smallest achievable centerline diameter is {_inches(smallest)}"
        ),
        warnings=warnings,
    )


def evaluate_part(part: Part, rule_set: RuleSet) -> Optional[FeasibilityResult]:
    """Feasibility for an estimate line, or None when it has no OD or requested diameter."""
    if part.outer_diameter is None or part.requested_diameter is None:
        return None
    return evaluate(
        part.outer_diameter,
        material_category_for_grade(part.material),
        part.requested_diameter,
        rule_set.roll_limits,
        rule_set.mandrel_dies,
    )

