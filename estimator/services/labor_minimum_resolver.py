# estimator/services/labor_minimum_resolver.py

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set

from estimator.schemas.estimate import Part
from estimator.schemas.rules import LaborMinimumRule
from estimator.services.pricing_models import LaborMinimumResult, RuleWarning, WarningKind

logger = logging.getLogger(__name__)


def _within(value: Optional[Decimal], lower: Optional[Decimal], upper: Optional[Decimal]) -> bool:
    # Unset bounds are open; a set bound against a missing value never matches
    if lower is None and upper is None:
        return True
    if value is None:
        return False
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def rule_matches(rule: LaborMinimumRule, part: Part) -> bool:
    """True when the rule's part type, size bounds and width bounds all cover the part."""
    if rule.part_type != part.part_type:
        return False
    if not _within(part.size_value(rule.size_field), rule.min_size, rule.max_size):
        return False
    return _within(part.width, rule.min_width, rule.max_width)


def total_labor(parts: Sequence[Part]) -> Decimal:
    return sum((part.labor_cost * part.quantity for part in parts), Decimal(0))


def _invalid_rules(rules: Sequence[LaborMinimumRule], warnings: List[RuleWarning]) -> Set[int]:
    invalid = set()
    for index, rule in enumerate(rules):
        for problem in rule.bound_problems():
            invalid.add(index)
            logger.warning(
                f"Labor minimum rule {index} '{rule.label}' has min {problem['field']} "
                f"{problem['min']} > max {problem['max']}; skipping it"
            )
            warnings.append(RuleWarning(
                kind=WarningKind.INVALID_RULE_BOUNDS,
                message=f"Labor minimum '{rule.label or index + 1}' has inverted {problem['field']} bounds and was ignored",
                context={"rule_index": index, **problem},
            ))
    return invalid


def resolve(
    parts: Sequence[Part],
    rules: Sequence[LaborMinimumRule],
    minimum_override: bool = False,
) -> LaborMinimumResult:
    """
    Resolve the labor minimum for a whole estimate.

    Every part is matched against every rule; of all rules matched by any part
    the single highest minimum wins, ties going to the rule listed first. The
    minimum is compared against the estimate's summed labor, not per part.

    Args:
        parts: Estimate lines in order
        rules: Labor minimum table in order
        minimum_override: Report the winning rule but keep actual labor

    Returns:
        LaborMinimumResult with the effective labor charge
    """
    warnings: List[RuleWarning] = []
    invalid = _invalid_rules(rules, warnings)

    matched_rules: Dict[int, List[int]] = {}
    matched: Set[int] = set()
    for part_index, part in enumerate(parts):
        hits = [
            rule_index for rule_index, rule in enumerate(rules)
            if rule_index not in invalid and rule_matches(rule, part)
        ]
        matched_rules[part_index] = hits
        matched.update(hits)

    selected_index = None
    for rule_index in sorted(matched):
        if selected_index is None or rules[rule_index].minimum > rules[selected_index].minimum:
            selected_index = rule_index

    labor = total_labor(parts)

    if selected_index is None:
        if parts:
            logger.info(f"No labor minimum matched {len(parts)} part(s); using actual labor {labor}")
            warnings.append(RuleWarning(
                kind=WarningKind.AMBIGUOUS_RULE,
                message="No labor minimum rule matched any part; actual labor is charged",
                context={"part_count": len(parts)},
            ))
        return LaborMinimumResult(
            total_labor=labor,
            effective_labor=labor,
            matched_rules=matched_rules,
            warnings=warnings,
        )

    rule = rules[selected_index]
    below_minimum = labor < rule.minimum

    if minimum_override:
        logger.info(f"Labor minimum '{rule.label}' ({rule.minimum}) overridden; charging {labor}")
        return LaborMinimumResult(
            total_labor=labor,
            effective_labor=labor,
            rule=rule,
            rule_index=selected_index,
            minimum_overridden=below_minimum,
            matched_rules=matched_rules,
            warnings=warnings,
        )

    effective = rule.minimum if below_minimum else labor
    logger.debug(f"Labor minimum '{rule.label}' ({rule.minimum}) vs labor {labor}: charging {effective}")
    return LaborMinimumResult(
        total_labor=labor,
        effective_labor=effective,
        rule=rule,
        rule_index=selected_index,
        minimum_applies=below_minimum,
        matched_rules=matched_rules,
        warnings=warnings,
    )
