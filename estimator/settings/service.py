# estimator/settings/service.py

import logging
from typing import Any, Callable, List

from sqlalchemy.orm import Session

from estimator.core.exceptions import UnknownSettingsKeyError
from estimator.database.models import SettingRecord
from estimator.schemas.rules import MaterialGrade, PartType
from estimator.services.config_loader import config_loader
from estimator.services.rule_table_cache import RuleTableCache
from estimator.services.rule_tables import (
    MATERIAL_GRADES, RULE_TABLE_KEYS, RuleSet, RuleTable, dump_table, parse_table, validate_bounds
)

logger = logging.getLogger(__name__)

# Shared by every request in this process; saves evict their own key
rule_table_cache = RuleTableCache()


def _require_known(key: str) -> None:
    if key not in RULE_TABLE_KEYS:
        raise UnknownSettingsKeyError(key, RULE_TABLE_KEYS)


class SettingsService:

    @staticmethod
    def load_table(db: Session, key: str) -> RuleTable:
        """Saved table from the database, else the YAML seed copy."""
        _require_known(key)
        record = db.get(SettingRecord, key)
        if record is not None:
            return RuleTable.from_data(key, record.value, version=record.version, updated_at=record.updated_at)
        logger.debug(f"No saved '{key}' table; loading seed copy")
        return config_loader.load_table(key)

    @staticmethod
    def get_table(db: Session, key: str, cache: RuleTableCache = None) -> RuleTable:
        """Get one rule table, through the cache"""
        cache = rule_table_cache if cache is None else cache
        _require_known(key)
        table = cache.get(key)
        if table is None:
            table = SettingsService.load_table(db, key)
            cache.set(key, table)
        return table

    @staticmethod
    def get_rule_set(db: Session, cache: RuleTableCache = None) -> RuleSet:
        """Snapshot of every table for one computation"""
        cache = rule_table_cache if cache is None else cache
        return cache.snapshot(lambda key: SettingsService.load_table(db, key))

    @staticmethod
    def rule_source(db: Session, cache: RuleTableCache = None) -> Callable[[], RuleSet]:
        return lambda: SettingsService.get_rule_set(db, cache)

    @staticmethod
    def save_table(db: Session, key: str, value: Any, cache: RuleTableCache = None) -> RuleTable:
        """
        Replace a whole rule table.

        The document is parsed and bound-checked before anything is written, so
        a rejected save leaves the stored table and the cache untouched.

        Raises:
            UnknownSettingsKeyError: key is not a rule table
            RuleDataError: required fields missing or values malformed
            InvalidRuleBounds: a rule's min exceeds its max
        """
        cache = rule_table_cache if cache is None else cache
        _require_known(key)

        rules = parse_table(key, value)
        validate_bounds(key, rules)
        stored_value = dump_table(key, rules)

        record = db.get(SettingRecord, key)
        if record is None:
            record = SettingRecord(key=key, value=stored_value, version=1)
            db.add(record)
        else:
            record.value = stored_value
            record.version = record.version + 1

        db.commit()
        db.refresh(record)
        cache.invalidate(key)

        logger.info(f"Settings table '{key}' saved as version {record.version}")
        return RuleTable(key=key, rules=rules, version=record.version, updated_at=record.updated_at)

    @staticmethod
    def get_material_grades(db: Session, part_type: PartType, cache: RuleTableCache = None) -> List[MaterialGrade]:
        """Grades offered for one part type, in table order"""
        table = SettingsService.get_table(db, MATERIAL_GRADES, cache)
        return [grade for grade in table.rules if part_type in grade.part_types]
