# estimator/services/pricing_models.py

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from estimator.schemas.rules import LaborMinimumRule, MandrelDie, RollLimitRule
from estimator.utils.dimension_helpers import round_money


class FeasibilityStatus(Enum):
    """Outcome of a roll-feasibility check."""
    FEASIBLE = "feasible"
    FEASIBLE_WITH_MANDREL = "feasible_with_mandrel"
    INFEASIBLE = "infeasible"

class WarningKind(Enum):
    """Non-fatal conditions returned alongside results."""
    AMBIGUOUS_RULE = "ambiguous_rule"
    INVALID_RULE_BOUNDS = "invalid_rule_bounds"

@dataclass(frozen=True)
class RuleWarning:
    kind: WarningKind
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": {key: _plain(value) for key, value in self.context.items()},
        }


def _plain(value: Any) -> Any:
    # Decimals cross the API boundary as strings
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _money(value: Decimal) -> str:
    return str(round_money(value))


# ===================================================================
#  Feasibility
# ===================================================================
@dataclass
class FeasibilityResult:
    status: FeasibilityStatus
    outer_diameter: Decimal
    requested_diameter: Decimal
    min_diameter: Decimal
    rule: Optional[RollLimitRule] = None
    die: Optional[MandrelDie] = None
    fitting_dies: List[MandrelDie] = field(default_factory=list)
    smallest_achievable: Optional[Decimal] = None
    message: str = ""
    warnings: List[RuleWarning] = field(default_factory=list)

    @property
    def is_feasible(self) -> bool:
        return self.status != FeasibilityStatus.INFEASIBLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "feasible": self.is_feasible,
            "outer_diameter": str(self.outer_diameter),
            "requested_diameter": str(self.requested_diameter),
            "min_diameter": str(self.min_diameter),
            "rule": self.rule.model_dump(mode="json", by_alias=True) if self.rule else None,
            "die": self.die.model_dump(mode="json", by_alias=True) if self.die else None,
            "fitting_dies": [die.model_dump(mode="json", by_alias=True) for die in self.fitting_dies],
            "smallest_achievable": str(self.smallest_achievable) if self.smallest_achievable is not None else None,
            "message": self.message,
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


# ===================================================================
#  Labor minimums
# ===================================================================
@dataclass
class LaborMinimumResult:
    total_labor: Decimal
    effective_labor: Decimal
    rule: Optional[LaborMinimumRule] = None
    rule_index: Optional[int] = None
    minimum_applies: bool = False
    minimum_overridden: bool = False
    matched_rules: Dict[int, List[int]] = field(default_factory=dict)
    warnings: List[RuleWarning] = field(default_factory=list)

    @property
    def labor_difference(self) -> Decimal:
        """Amount the minimum added on top of actual labor."""
        return self.effective_labor - self.total_labor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_labor": _money(self.total_labor),
            "effective_labor": _money(self.effective_labor),
            "labor_difference": _money(self.labor_difference),
            "minimum_applies": self.minimum_applies,
            "minimum_overridden": self.minimum_overridden,
            "rule": self.rule.model_dump(mode="json", by_alias=True, exclude_none=True) if self.rule else None,
            "rule_index": self.rule_index,
            "matched_rules": {str(index): rules for index, rules in self.matched_rules.items()},
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


# ===================================================================
#  Weld cost
# ===================================================================
@dataclass
class WeldCostBreakdown:
    passes: int
    length_feet: int
    rate: Decimal
    cost: Decimal
    material_grade: Optional[str] = None
    quantity: int = 1

    @property
    def extended_cost(self) -> Decimal:
        return self.cost * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "material_grade": self.material_grade,
            "passes": self.passes,
            "length_feet": self.length_feet,
            "rate": str(self.rate),
            "cost": _money(self.cost),
            "quantity": self.quantity,
            "extended_cost": _money(self.extended_cost),
        }


# ===================================================================
#  Priced estimate
# ===================================================================
@dataclass
class CardFees:
    in_person: Decimal
    manual: Decimal

@dataclass
class PricedEstimate:
    """Full-precision totals; to_dict() is where rounding happens."""
    material_subtotal: Decimal
    effective_labor: Decimal
    weld_total: Decimal
    labor_total: Decimal
    subtotal: Decimal
    discount: Decimal
    taxable_base: Decimal
    tax_rate: Decimal
    tax: Decimal
    trucking: Decimal
    grand_total: Decimal
    card_fees: CardFees
    line_materials: List[Decimal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "material_subtotal": _money(self.material_subtotal),
            "effective_labor": _money(self.effective_labor),
            "weld_total": _money(self.weld_total),
            "labor_total": _money(self.labor_total),
            "subtotal": _money(self.subtotal),
            "discount": _money(self.discount),
            "taxable_base": _money(self.taxable_base),
            "tax_rate": str(self.tax_rate),
            "tax": _money(self.tax),
            "trucking": _money(self.trucking),
            "grand_total": _money(self.grand_total),
            "line_materials": [_money(amount) for amount in self.line_materials],
            "card_payment": {
                "in_person_fee": _money(self.card_fees.in_person),
                "in_person_total": _money(self.grand_total + self.card_fees.in_person),
                "manual_fee": _money(self.card_fees.manual),
                "manual_total": _money(self.grand_total + self.card_fees.manual),
            },
        }

@dataclass
class EstimateQuote:
    """Everything the estimate screen attaches back to the estimate."""
    priced: PricedEstimate
    labor: LaborMinimumResult
    feasibility: Dict[int, FeasibilityResult] = field(default_factory=dict)
    welds: Dict[int, WeldCostBreakdown] = field(default_factory=dict)
    warnings: List[RuleWarning] = field(default_factory=list)
    rule_versions: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totals": self.priced.to_dict(),
            "labor": self.labor.to_dict(),
            "feasibility": {str(index): result.to_dict() for index, result in self.feasibility.items()},
            "welds": {str(index): weld.to_dict() for index, weld in self.welds.items()},
            "warnings": [warning.to_dict() for warning in self.warnings],
            "rule_versions": dict(self.rule_versions),
        }
