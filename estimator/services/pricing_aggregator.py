# estimator/services/pricing_aggregator.py

import logging
from decimal import Decimal, ROUND_CEILING
from typing import List, Optional, Sequence

from estimator.core.config import settings
from estimator.schemas.estimate import Estimate, MaterialRounding, Part, TaxStatus
from estimator.schemas.rules import TaxSettings
from estimator.services.pricing_models import CardFees, LaborMinimumResult, PricedEstimate
from estimator.utils.dimension_helpers import percent_of

logger = logging.getLogger(__name__)

_FIVE = Decimal(5)


def resolve_markup(part: Part, estimate: Estimate, tax_settings: TaxSettings) -> Decimal:
    """Part override, then the estimate's markup, then the shop default."""
    if part.material_markup_percent is not None:
        return part.material_markup_percent
    if estimate.material_markup is not None:
        return estimate.material_markup
    return tax_settings.default_material_markup


def round_material(amount: Decimal, rounding: MaterialRounding) -> Decimal:
    if amount <= 0 or rounding == MaterialRounding.none:
        return amount
    if rounding == MaterialRounding.dollar:
        return amount.to_integral_value(rounding=ROUND_CEILING)
    return (amount / _FIVE).to_integral_value(rounding=ROUND_CEILING) * _FIVE


def material_each(part: Part, estimate: Estimate, tax_settings: TaxSettings) -> Decimal:
    markup = resolve_markup(part, estimate, tax_settings)
    marked_up = part.material_cost + percent_of(part.material_cost, markup)
    return round_material(marked_up, part.material_rounding)


def resolve_tax_rate(estimate: Estimate, tax_settings: TaxSettings) -> Decimal:
    # Resale and exempt clients pay no tax whatever rate is configured
    if estimate.tax_status != TaxStatus.taxable:
        return Decimal(0)
    if estimate.custom_tax_rate is not None:
        return estimate.custom_tax_rate
    return tax_settings.default_tax_rate


def resolve_discount(estimate: Estimate, subtotal: Decimal) -> Decimal:
    if estimate.discount_percent is not None and estimate.discount_percent > 0:
        discount = percent_of(subtotal, estimate.discount_percent)
    elif estimate.discount_amount is not None and estimate.discount_amount > 0:
        discount = estimate.discount_amount
    else:
        return Decimal(0)
    return min(discount, subtotal) if subtotal > 0 else Decimal(0)


def card_fee(amount: Decimal, percent: Decimal) -> Decimal:
    return percent_of(amount, percent) + settings.CARD_FIXED_FEE


def aggregate(
    estimate: Estimate,
    labor_result: LaborMinimumResult,
    weld_costs: Sequence[Decimal],
    tax_settings: Optional[TaxSettings] = None,
) -> PricedEstimate:
    """
    Combine material, labor and tax into estimate totals.

    Weld costs are extended line totals added on top of the (possibly
    minimum-adjusted) labor; they never take part in the minimum comparison.
    No rounding happens here.
    """
    tax_settings = TaxSettings() if tax_settings is None else tax_settings

    line_materials: List[Decimal] = [
        material_each(part, estimate, tax_settings) * part.quantity for part in estimate.parts
    ]
    material_subtotal = sum(line_materials, Decimal(0))

    weld_total = sum(weld_costs, Decimal(0))
    labor_total = labor_result.effective_labor + weld_total
    subtotal = material_subtotal + labor_total

    discount = resolve_discount(estimate, subtotal)
    taxable_base = subtotal - discount

    tax_rate = resolve_tax_rate(estimate, tax_settings)
    tax = percent_of(taxable_base, tax_rate)

    trucking = estimate.trucking_cost or Decimal(0)
    grand_total = taxable_base + tax + trucking

    logger.debug(
        f"Aggregated estimate: material {material_subtotal}, labor {labor_total}, "
        f"tax {tax} at {tax_rate}% ({estimate.tax_status.value}), total {grand_total}"
    )

    return PricedEstimate(
        material_subtotal=material_subtotal,
        effective_labor=labor_result.effective_labor,
        weld_total=weld_total,
        labor_total=labor_total,
        subtotal=subtotal,
        discount=discount,
        taxable_base=taxable_base,
        tax_rate=tax_rate,
        tax=tax,
        trucking=trucking,
        grand_total=grand_total,
        card_fees=CardFees(
            in_person=card_fee(grand_total, settings.CARD_IN_PERSON_PERCENT),
            manual=card_fee(grand_total, settings.CARD_MANUAL_PERCENT),
        ),
        line_materials=line_materials,
    )
