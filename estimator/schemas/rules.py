# estimator/schemas/rules.py

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from estimator.utils.dimension_helpers import to_decimal


def _coerce_decimal(value: Any) -> Any:
    # ints and floats go through str() so JSON floats never leak binary noise
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return to_decimal(value)
    return value


def _coerce_bound(value: Any) -> Any:
    # The settings screens save blank inputs as "" and 0; both mean "no bound"
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    number = to_decimal(value)
    if number is None or number <= 0:
        return None
    return number


DecimalValue = Annotated[Decimal, BeforeValidator(_coerce_decimal)]
OptionalBound = Annotated[Optional[Decimal], BeforeValidator(_coerce_bound)]


class PartType(str, Enum):
    plate_roll = "plate_roll"
    angle_roll = "angle_roll"
    pipe_roll = "pipe_roll"
    tube_roll = "tube_roll"
    beam_roll = "beam_roll"
    channel_roll = "channel_roll"
    flat_bar = "flat_bar"
    flat_stock = "flat_stock"
    section_roll = "section_roll"
    other = "other"

class SizeField(str, Enum):
    thickness = "thickness"
    angle_size = "angleSize"
    section_size = "sectionSize"
    outer_diameter = "outerDiameter"

class MaterialCategory(str, Enum):
    steel = "steel"
    stainless = "stainless"
    aluminum = "aluminum"
    all = "all"


class RuleModel(BaseModel):
    """Rule documents use camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


# ===================================================================
#  Rule Entries
# ===================================================================
class LaborMinimumRule(RuleModel):
    part_type: PartType
    label: str = ""
    size_field: SizeField = SizeField.thickness
    min_size: OptionalBound = None
    max_size: OptionalBound = None
    min_width: OptionalBound = None
    max_width: OptionalBound = None
    minimum: DecimalValue

    @property
    def has_size_bounds(self) -> bool:
        return self.min_size is not None or self.max_size is not None

    @property
    def has_width_bounds(self) -> bool:
        return self.min_width is not None or self.max_width is not None

    def bound_problems(self) -> List[Dict[str, Any]]:
        """Inverted bounds on this rule; such a rule can never match."""
        problems = []
        if self.min_size is not None and self.max_size is not None and self.min_size > self.max_size:
            problems.append({"field": "size", "min": self.min_size, "max": self.max_size})
        if self.min_width is not None and self.max_width is not None and self.min_width > self.max_width:
            problems.append({"field": "width", "min": self.min_width, "max": self.max_width})
        return problems

class RollLimitRule(RuleModel):
    od: DecimalValue = Field(..., gt=0, description="Tube/pipe outer diameter in inches.")
    material_category: MaterialCategory = MaterialCategory.all
    min_diameter: DecimalValue = Field(..., gt=0, description="Smallest centerline diameter the rolls can reach.")
    label: str = ""

class MandrelDie(RuleModel):
    od: DecimalValue = Field(..., gt=0)
    wall_thickness: str = ""
    min_diameter: DecimalValue = Field(..., gt=0)
    label: str = ""
    notes: str = ""

    @field_validator("wall_thickness", mode="before")
    @classmethod
    def _wall_as_text(cls, value):
        return "" if value is None else str(value)

class MaterialGrade(RuleModel):
    name: str
    part_types: List[PartType] = Field(default_factory=list)
    yield_strength: str = ""
    tensile_strength: str = ""

    @field_validator("yield_strength", "tensile_strength", mode="before")
    @classmethod
    def _strength_as_text(cls, value):
        return "" if value is None else str(value)


DEFAULT_RATE_KEY = "default"

class WeldRateTable(BaseModel):
    """Weld price per foot by grade name, plus the shop default rate."""
    model_config = ConfigDict(frozen=True)

    rates: Dict[str, DecimalValue] = Field(default_factory=dict)
    default: Optional[DecimalValue] = None

    @model_validator(mode="before")
    @classmethod
    def _from_flat_mapping(cls, data):
        # Stored as {"A36": 5.0, "304 S/S": 8.5, "default": 5.0}
        if isinstance(data, dict) and "rates" not in data:
            rates = {
                grade: rate for grade, rate in data.items()
                if grade != DEFAULT_RATE_KEY and rate not in (None, "")
            }
            default = data.get(DEFAULT_RATE_KEY)
            if default == "":
                default = None
            return {"rates": rates, "default": default}
        return data

    def rate_for(self, grade: Optional[str], partial_match: bool = False) -> Optional[Decimal]:
        """Exact grade rate, else (optionally) a grade containing a configured key, else the default."""
        if grade and grade in self.rates:
            return self.rates[grade]
        if partial_match and grade:
            lowered = grade.lower()
            for key, rate in self.rates.items():
                if key.lower() in lowered:
                    return rate
        return self.default

    def to_mapping(self) -> Dict[str, str]:
        mapping = {grade: str(rate) for grade, rate in self.rates.items()}
        if self.default is not None:
            mapping[DEFAULT_RATE_KEY] = str(self.default)
        return mapping

class TaxSettings(RuleModel):
    default_tax_rate: DecimalValue = Decimal("9.75")
    default_labor_rate: DecimalValue = Decimal("125")
    default_material_markup: DecimalValue = Decimal("20")
