from estimator.services.rule_table_cache import RuleTableCache
from estimator.services.rule_tables import (
    LABOR_MINIMUMS, RULE_TABLE_KEYS, TAX_SETTINGS, RuleTable, default_tables
)


def test_get_set_and_stats(cache):
    table = RuleTable.from_data(TAX_SETTINGS, {})
    assert cache.get(TAX_SETTINGS) is None
    cache.set(TAX_SETTINGS, table)
    assert cache.get(TAX_SETTINGS) is table
    stats = cache.get_cache_stats()
    assert stats["total_hits"] == 1
    assert stats["total_misses"] == 1
    assert stats["cached_keys"] == [TAX_SETTINGS]


def test_invalidate_evicts_only_that_key(cache):
    for key, table in default_tables().items():
        cache.set(key, table)
    assert cache.invalidate(LABOR_MINIMUMS)
    assert LABOR_MINIMUMS not in cache
    assert len(cache) == len(RULE_TABLE_KEYS) - 1
    assert not cache.invalidate(LABOR_MINIMUMS)


def test_size_limit_evicts_oldest_first():
    cache = RuleTableCache(size_limit=2)
    tables = default_tables()
    cache.set("labor_minimums", tables["labor_minimums"])
    cache.set("roll_limits", tables["roll_limits"])
    cache.set("weld_rates", tables["weld_rates"])
    assert "labor_minimums" not in cache
    assert "weld_rates" in cache
    assert cache.get_cache_stats()["total_evictions"] == 1


def test_snapshot_loads_only_missing_tables(cache, mocker):
    tables = default_tables()
    cache.set(TAX_SETTINGS, tables[TAX_SETTINGS])
    loader = mocker.Mock(side_effect=lambda key: tables[key])

    first = cache.snapshot(loader)
    assert loader.call_count == len(RULE_TABLE_KEYS) - 1
    assert TAX_SETTINGS not in [call.args[0] for call in loader.call_args_list]

    second = cache.snapshot(loader)
    assert loader.call_count == len(RULE_TABLE_KEYS) - 1
    assert first == second


def test_snapshot_survives_later_invalidation(cache):
    tables = default_tables()
    snapshot = cache.snapshot(lambda key: tables[key])
    cache.clear()
    assert len(snapshot.roll_limits) == 11
