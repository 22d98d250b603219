# estimator/services/rule_table_cache.py

import time
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from estimator.core.config import settings
from estimator.services.rule_tables import RULE_TABLE_KEYS, RuleSet, RuleTable

logger = logging.getLogger(__name__)

TableLoader = Callable[[str], RuleTable]


class RuleTableCache:
    """
    In-memory cache of parsed rule tables keyed by table name.

    Owned by whoever constructs the engine; the settings service evicts a key
    whenever that table is saved.
    """

    def __init__(self, size_limit: int = None):
        self.size_limit = size_limit or settings.RULE_CACHE_SIZE
        self._entries: Dict[str, Tuple[float, RuleTable]] = {}
        self.cache_stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
            "invalidations": 0
        }
        logger.info(f"RuleTableCache initialized with size limit: {self.size_limit}")

    def get(self, key: str) -> Optional[RuleTable]:
        entry = self._entries.get(key)
        if entry is None:
            self.cache_stats["misses"] += 1
            logger.debug(f"Rule cache miss: {key}")
            return None
        self.cache_stats["hits"] += 1
        return entry[1]

    def set(self, key: str, table: RuleTable) -> None:
        if key not in self._entries and len(self._entries) >= self.size_limit:
            self._evict_oldest_entries()
        self._entries[key] = (time.monotonic(), table)
        self.cache_stats["sets"] += 1
        logger.debug(f"Rule table cached: {key} v{table.version}")

    def invalidate(self, key: str) -> bool:
        """Drop one table so the next snapshot reloads it."""
        removed = self._entries.pop(key, None) is not None
        if removed:
            self.cache_stats["invalidations"] += 1
            logger.info(f"Rule table invalidated: {key}")
        return removed

    def clear(self) -> int:
        cleared_count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared {cleared_count} rule table entries")
        return cleared_count

    def _evict_oldest_entries(self, evict_count: int = None):
        if evict_count is None:
            evict_count = max(1, self.size_limit // 10)

        sorted_items = sorted(self._entries.items(), key=lambda item: item[1][0])
        for key, _ in sorted_items[:evict_count]:
            del self._entries[key]
            self.cache_stats["evictions"] += 1

        logger.debug(f"Evicted {evict_count} rule table entries")

    def snapshot(self, loader: TableLoader) -> RuleSet:
        """
        Build a RuleSet from cached tables, loading only the missing keys.

        The returned RuleSet is immutable; later saves and invalidations do not
        affect a computation already holding it.
        """
        tables = {}
        for key in RULE_TABLE_KEYS:
            table = self.get(key)
            if table is None:
                table = loader(key)
                self.set(key, table)
            tables[key] = table
        return RuleSet.from_tables(tables)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_cache_stats(self) -> Dict[str, Any]:
        total_requests = self.cache_stats["hits"] + self.cache_stats["misses"]
        hit_rate = (self.cache_stats["hits"] / total_requests * 100) if total_requests > 0 else 0

        return {
            "cache_size": len(self._entries),
            "cache_limit": self.size_limit,
            "cached_keys": sorted(self._entries),
            "hit_rate_percent": round(hit_rate, 2),
            "total_hits": self.cache_stats["hits"],
            "total_misses": self.cache_stats["misses"],
            "total_sets": self.cache_stats["sets"],
            "total_evictions": self.cache_stats["evictions"],
            "total_invalidations": self.cache_stats["invalidations"]
        }
