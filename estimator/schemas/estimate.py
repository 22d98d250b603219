# estimator/schemas/estimate.py

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from estimator.schemas.rules import DecimalValue, MaterialCategory, PartType, SizeField
from estimator.utils.dimension_helpers import parse_dimension, to_decimal


def _coerce_dimension(value: Any) -> Optional[Decimal]:
    # A blank or zero dimension means the part does not have that attribute
    if value is None:
        return None
    number = parse_dimension(value)
    return number if number > 0 else None


def _coerce_cost(value: Any) -> Decimal:
    number = _coerce_optional_decimal(value)
    return Decimal(0) if number is None else number


def _coerce_optional_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, str) and not value.strip():
        return None
    return to_decimal(value)


DimensionValue = Annotated[Optional[Decimal], BeforeValidator(_coerce_dimension)]
OptionalDecimal = Annotated[Optional[Decimal], BeforeValidator(_coerce_optional_decimal)]
CostValue = Annotated[Decimal, BeforeValidator(_coerce_cost)]


class TaxStatus(str, Enum):
    taxable = "taxable"
    resale = "resale"
    exempt = "exempt"

class MaterialRounding(str, Enum):
    none = "none"
    dollar = "dollar"
    five = "five"

class MeasureType(str, Enum):
    diameter = "diameter"
    radius = "radius"

class MeasurePoint(str, Enum):
    inside = "inside"
    outside = "outside"
    centerline = "centerline"


class EstimateModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ===================================================================
#  Parts and Estimates
# ===================================================================
class Part(EstimateModel):
    """A single line on an estimate. Costs are per each; quantity extends them."""

    part_type: PartType = PartType.other
    material: Optional[str] = Field(None, description="Material grade name, e.g. 'A36' or '304 S/S'.")
    thickness: DimensionValue = None
    angle_size: DimensionValue = None
    section_size: DimensionValue = None
    outer_diameter: DimensionValue = None
    width: DimensionValue = None
    seam_length: DimensionValue = Field(None, description="Weld seam length in inches.")
    labor_cost: CostValue = Decimal(0)
    material_cost: CostValue = Decimal(0)
    quantity: int = Field(1, ge=1)

    material_markup_percent: OptionalDecimal = Field(
        None, description="Overrides the estimate and shop markup for this part only."
    )
    material_rounding: MaterialRounding = MaterialRounding.none
    requested_diameter: DimensionValue = Field(
        None, description="Requested centerline roll diameter in inches."
    )
    weld_included_in_labor: bool = False

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, value):
        if value is None or value == "":
            return 1
        return value

    @field_validator("material", mode="before")
    @classmethod
    def _blank_material(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def size_value(self, size_field: SizeField) -> Optional[Decimal]:
        """The attribute a labor-minimum rule compares, or None when the part lacks it."""
        return {
            SizeField.thickness: self.thickness,
            SizeField.angle_size: self.angle_size,
            SizeField.section_size: self.section_size,
            SizeField.outer_diameter: self.outer_diameter,
        }[size_field]

class Estimate(EstimateModel):
    parts: List[Part] = Field(default_factory=list)
    tax_status: TaxStatus = TaxStatus.taxable
    custom_tax_rate: OptionalDecimal = Field(None, description="Percent, e.g. 8.25.")
    material_markup: OptionalDecimal = Field(None, description="Percent markup on material.")
    minimum_override: bool = False
    minimum_override_reason: str = ""
    discount_percent: OptionalDecimal = None
    discount_amount: OptionalDecimal = None
    trucking_cost: OptionalDecimal = None


# ===================================================================
#  Single-operation requests
# ===================================================================
class FeasibilityRequest(EstimateModel):
    outer_diameter: DecimalValue = Field(..., gt=0)
    material_category: Optional[MaterialCategory] = None
    material: Optional[str] = Field(None, description="Grade name; used to infer the category when none is given.")
    requested_diameter: DecimalValue = Field(..., gt=0)
    measure_type: MeasureType = MeasureType.diameter
    measure_point: MeasurePoint = MeasurePoint.centerline

class WeldCostRequest(EstimateModel):
    thickness: DecimalValue
    seam_length: DecimalValue
    material: Optional[str] = None
    partial_match: bool = False
