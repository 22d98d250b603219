# estimator/services/config_loader.py

import yaml
import logging
from typing import Any, Dict, List
from pathlib import Path

from estimator.core.config import settings
from estimator.core.exceptions import EstimatorError
from estimator.services.rule_tables import (
    DEFAULT_TABLE_DATA, RULE_TABLE_KEYS, RuleTable, dump_table, parse_table, validate_bounds
)

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and saves the seed rule tables kept in YAML."""

    def __init__(self, config_path: str = None):
        self.config_path = Path(config_path or settings.RULE_TABLES_PATH)
        self._config_cache: Dict[str, Any] = {}
        logger.info(f"ConfigLoader initialized with rule tables file: {self.config_path}")

    def _read(self) -> Dict[str, Any]:
        if "raw" in self._config_cache:
            return self._config_cache["raw"]

        if not self.config_path.exists():
            logger.warning(f"Rule tables file not found: {self.config_path}; using built-in defaults")
            data = {}
        else:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}

        self._config_cache["raw"] = data
        return data

    def load_table_data(self, key: str) -> Any:
        """Raw table data for a key, falling back to the shop defaults."""
        data = self._read()
        if key in data:
            return data[key]
        logger.debug(f"Table '{key}' not in {self.config_path}; using shop defaults")
        return DEFAULT_TABLE_DATA[key]

    def load_table(self, key: str) -> RuleTable:
        return RuleTable.from_data(key, self.load_table_data(key))

    def load_tables(self) -> Dict[str, RuleTable]:
        tables = {key: self.load_table(key) for key in RULE_TABLE_KEYS}
        logger.info(f"Rule tables loaded from {self.config_path}")
        return tables

    def reload_config(self) -> None:
        self._config_cache.clear()
        logger.info(f"Configuration reloaded: {self.config_path}")

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """
        Validate every table in a rule tables document.

        Returns:
            List of problems; empty when the document is usable
        """
        problems = []

        for key in config_data:
            if key not in RULE_TABLE_KEYS:
                problems.append(f"Unknown rule table: {key}")

        for key in RULE_TABLE_KEYS:
            if key not in config_data:
                problems.append(f"Missing rule table: {key}")
                continue
            try:
                validate_bounds(key, parse_table(key, config_data[key]))
            except EstimatorError as e:
                problems.append(f"{key}: {e.user_message}")

        logger.debug(f"Configuration validation completed: {len(problems)} problems")
        return problems

    def save_tables(self, tables: Dict[str, RuleTable]) -> None:
        """Write tables back to YAML, decimals as strings."""
        config_data = {key: dump_table(key, table.rules) for key, table in tables.items()}

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)

        self._config_cache.clear()
        logger.info(f"Rule tables saved: {self.config_path}")

# Global config loader instance
config_loader = ConfigLoader()
