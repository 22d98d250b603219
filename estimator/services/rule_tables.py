# estimator/services/rule_tables.py

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from estimator.core.exceptions import InvalidRuleBounds, RuleDataError
from estimator.schemas.rules import (
    LaborMinimumRule, MandrelDie, MaterialGrade, RollLimitRule, TaxSettings, WeldRateTable
)

logger = logging.getLogger(__name__)

LABOR_MINIMUMS = "labor_minimums"
ROLL_LIMITS = "roll_limits"
MANDREL_DIES = "mandrel_dies"
MATERIAL_GRADES = "material_grades"
WELD_RATES = "weld_rates"
TAX_SETTINGS = "tax_settings"

RULE_TABLE_KEYS = [LABOR_MINIMUMS, ROLL_LIMITS, MANDREL_DIES, MATERIAL_GRADES, WELD_RATES, TAX_SETTINGS]

_ADAPTERS: Dict[str, TypeAdapter] = {
    LABOR_MINIMUMS: TypeAdapter(List[LaborMinimumRule]),
    ROLL_LIMITS: TypeAdapter(List[RollLimitRule]),
    MANDREL_DIES: TypeAdapter(List[MandrelDie]),
    MATERIAL_GRADES: TypeAdapter(List[MaterialGrade]),
    WELD_RATES: TypeAdapter(WeldRateTable),
    TAX_SETTINGS: TypeAdapter(TaxSettings),
}

# Shop defaults as shipped with the admin settings screens
DEFAULT_TABLE_DATA: Dict[str, Any] = {
    LABOR_MINIMUMS: [
        {"partType": "plate_roll", "label": "Plate up to 3/8\"", "sizeField": "thickness",
         "maxSize": "0.375", "minimum": "125"},
        {"partType": "plate_roll", "label": "Plate up to 3/8\", 24\"-60\" wide", "sizeField": "thickness",
         "maxSize": "0.375", "minWidth": "24", "maxWidth": "60", "minimum": "150"},
        {"partType": "plate_roll", "label": "Plate over 3/8\"", "sizeField": "thickness",
         "minSize": "0.376", "minimum": "200"},
        {"partType": "angle_roll", "label": "Angle up to 2\"", "sizeField": "angleSize",
         "maxSize": "2", "minimum": "150"},
        {"partType": "angle_roll", "label": "Angle over 2\"", "sizeField": "angleSize",
         "minSize": "2.01", "minimum": "250"},
    ],
    ROLL_LIMITS: [
        {"od": "0.625", "materialCategory": "steel", "minDiameter": "6", "label": "5/8\" OD"},
        {"od": "0.75", "materialCategory": "steel", "minDiameter": "7", "label": "3/4\" OD"},
        {"od": "1", "materialCategory": "steel", "minDiameter": "8", "label": "1\" OD"},
        {"od": "1.25", "materialCategory": "steel", "minDiameter": "10", "label": "1-1/4\" OD"},
        {"od": "1.5", "materialCategory": "steel", "minDiameter": "12", "label": "1-1/2\" OD"},
        {"od": "2", "materialCategory": "steel", "minDiameter": "16", "label": "2\" OD"},
        {"od": "3", "materialCategory": "steel", "minDiameter": "24", "label": "3\" OD"},
        {"od": "4", "materialCategory": "steel", "minDiameter": "32", "label": "4\" OD"},
        {"od": "1", "materialCategory": "aluminum", "minDiameter": "12", "label": "1\" OD Alum"},
        {"od": "1.5", "materialCategory": "aluminum", "minDiameter": "18", "label": "1-1/2\" OD Alum"},
        {"od": "2", "materialCategory": "aluminum", "minDiameter": "24", "label": "2\" OD Alum"},
    ],
    MANDREL_DIES: [],
    MATERIAL_GRADES: [
        {"name": "A36", "partTypes": ["plate_roll", "flat_stock"],
         "yieldStrength": "36,000", "tensileStrength": "58,000-80,000"},
        {"name": "A500 Gr B", "partTypes": ["pipe_roll", "tube_roll"],
         "yieldStrength": "42,000", "tensileStrength": "58,000"},
        {"name": "A513", "partTypes": ["pipe_roll", "tube_roll"],
         "yieldStrength": "32,000", "tensileStrength": "48,000"},
        {"name": "DOM", "partTypes": ["pipe_roll", "tube_roll"],
         "yieldStrength": "70,000", "tensileStrength": "80,000"},
        {"name": "A572 Gr 50", "partTypes": ["plate_roll", "beam_roll", "channel_roll"],
         "yieldStrength": "50,000", "tensileStrength": "65,000"},
        {"name": "304 S/S", "partTypes": ["plate_roll", "pipe_roll", "tube_roll", "angle_roll", "flat_stock"],
         "yieldStrength": "30,000", "tensileStrength": "75,000"},
        {"name": "316 S/S", "partTypes": ["plate_roll", "pipe_roll", "tube_roll", "angle_roll", "flat_stock"],
         "yieldStrength": "30,000", "tensileStrength": "75,000"},
        {"name": "AR400", "partTypes": ["plate_roll"],
         "yieldStrength": "100,000", "tensileStrength": "120,000"},
        {"name": "6061-T6 Alum", "partTypes": ["plate_roll", "pipe_roll", "tube_roll", "angle_roll"],
         "yieldStrength": "40,000", "tensileStrength": "45,000"},
        {"name": "5052 Alum", "partTypes": ["plate_roll", "pipe_roll", "tube_roll"],
         "yieldStrength": "28,000", "tensileStrength": "33,000"},
        {"name": "6063-T6 Alum", "partTypes": ["pipe_roll", "tube_roll"],
         "yieldStrength": "25,000", "tensileStrength": "30,000"},
    ],
    WELD_RATES: {"default": "5.00"},
    TAX_SETTINGS: {"defaultTaxRate": "9.75", "defaultLaborRate": "125", "defaultMaterialMarkup": "20"},
}


def parse_table(key: str, data: Any) -> Any:
    """
    Parse raw settings data for one table into its rule models.

    Raises:
        RuleDataError: when required fields are missing or values are malformed
    """
    adapter = _ADAPTERS.get(key)
    if adapter is None:
        raise RuleDataError(key, f"No parser registered for table '{key}'")
    if data is None:
        data = [] if key in (LABOR_MINIMUMS, ROLL_LIMITS, MANDREL_DIES, MATERIAL_GRADES) else {}
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        raise RuleDataError(key, str(e), errors=errors) from e


def dump_table(key: str, rules: Any) -> Any:
    """JSON-ready form of parsed rules; decimals become strings."""
    if key == WELD_RATES:
        return rules.to_mapping()
    return _ADAPTERS[key].dump_python(rules, mode="json", by_alias=True, exclude_none=True)


def validate_bounds(key: str, rules: Any) -> None:
    """Reject labor-minimum rules whose min exceeds max. Only called on save."""
    if key != LABOR_MINIMUMS:
        return
    for index, rule in enumerate(rules):
        for problem in rule.bound_problems():
            raise InvalidRuleBounds(key, index, problem["field"], problem["min"], problem["max"])


@dataclass(frozen=True)
class RuleTable:
    """One parsed settings table. Replaced wholesale on save, never mutated."""
    key: str
    rules: Any
    version: int = 1
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "rules": dump_table(self.key, self.rules),
            "version": self.version,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_data(cls, key: str, data: Any, version: int = 1, updated_at: Optional[datetime] = None) -> "RuleTable":
        return cls(key=key, rules=parse_table(key, data), version=version, updated_at=updated_at)


@dataclass(frozen=True)
class RuleSet:
    """Snapshot of every rule table taken at the start of one computation."""
    labor_minimums: List[LaborMinimumRule] = field(default_factory=list)
    roll_limits: List[RollLimitRule] = field(default_factory=list)
    mandrel_dies: List[MandrelDie] = field(default_factory=list)
    material_grades: List[MaterialGrade] = field(default_factory=list)
    weld_rates: WeldRateTable = field(default_factory=WeldRateTable)
    tax_settings: TaxSettings = field(default_factory=TaxSettings)
    versions: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_tables(cls, tables: Dict[str, RuleTable]) -> "RuleSet":
        missing = [key for key in RULE_TABLE_KEYS if key not in tables]
        if missing:
            logger.warning(f"Rule set built without tables {missing}; using empty defaults")
        kwargs = {key: tables[key].rules for key in RULE_TABLE_KEYS if key in tables}
        return cls(versions={key: table.version for key, table in tables.items()}, **kwargs)


def default_tables() -> Dict[str, RuleTable]:
    return {key: RuleTable.from_data(key, DEFAULT_TABLE_DATA[key]) for key in RULE_TABLE_KEYS}
