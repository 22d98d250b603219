# estimator/services/weld_cost_calculator.py

import logging
from decimal import Decimal, ROUND_CEILING
from typing import Optional

from estimator.core.config import settings
from estimator.core.exceptions import MissingRateError
from estimator.schemas.rules import WeldRateTable
from estimator.services.pricing_models import WeldCostBreakdown
from estimator.utils.dimension_helpers import Number, to_decimal

logger = logging.getLogger(__name__)


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def weld_passes(thickness: Number) -> int:
    """One pass per 1/8" of plate, rounded up."""
    return _ceil(to_decimal(thickness) / settings.WELD_PASS_THICKNESS)


def billed_feet(seam_length: Number) -> int:
    """Seam inches billed in whole feet, rounded up."""
    return _ceil(to_decimal(seam_length) / settings.INCHES_PER_FOOT)


def resolve_rate(material_grade: Optional[str], weld_rates: WeldRateTable, partial_match: bool = False) -> Decimal:
    rate = weld_rates.rate_for(material_grade, partial_match=partial_match)
    if rate is None:
        raise MissingRateError(material_grade, sorted(weld_rates.rates))
    return rate


def compute_weld_breakdown(
    thickness: Number,
    seam_length: Number,
    material_grade: Optional[str],
    weld_rates: WeldRateTable,
    partial_match: bool = False,
) -> WeldCostBreakdown:
    """
    passes x billed feet x rate, all in Decimal.

    Raises:
        MissingRateError: grade has no rate and no default rate is configured
    """
    rate = resolve_rate(material_grade, weld_rates, partial_match=partial_match)
    thickness = to_decimal(thickness) or Decimal(0)
    seam_length = to_decimal(seam_length) or Decimal(0)

    if thickness <= 0 or seam_length <= 0:
        return WeldCostBreakdown(passes=0, length_feet=0, rate=rate, cost=Decimal(0), material_grade=material_grade)

    passes = weld_passes(thickness)
    length_feet = billed_feet(seam_length)
    cost = passes * length_feet * rate
    logger.debug(f"Weld {material_grade}: {passes} pass(es) x {length_feet} ft x {rate} = {cost}")
    return WeldCostBreakdown(
        passes=passes,
        length_feet=length_feet,
        rate=rate,
        cost=cost,
        material_grade=material_grade,
    )


def compute_weld_cost(
    thickness: Number,
    seam_length: Number,
    material_grade: Optional[str],
    weld_rates: WeldRateTable,
    partial_match: bool = False,
) -> Decimal:
    return compute_weld_breakdown(thickness, seam_length, material_grade, weld_rates, partial_match).cost
