"""Tests for the namespaced TTL cache."""

import json
from unittest.mock import MagicMock

import pytest

from wordwise.application.cache.manager import LocalCacheManager
from wordwise.domain.cache.ports import QuotaExceededError
from wordwise.infrastructure.adapters.stores.memory_store import InMemoryStore

STATS_KEY = "vocab_cache__stats"


class FullStore(InMemoryStore):
    """Rejects every cache entry write but lets the stats record through."""

    def set_item(self, key: str, value: str) -> None:
        if key != STATS_KEY:
            raise QuotaExceededError("full")
        super().set_item(key, value)


# --- get / set ---


def test_set_then_get_returns_value(cache):
    assert cache.set("w1", {"id": "w1"}, 1000) is True
    assert cache.get("w1") == {"id": "w1"}


def test_entries_are_stored_under_namespace(cache, memory_store, clock):
    cache.set("w1", [1, 2])

    raw = json.loads(memory_store.get_item("vocab_cache_w1"))
    assert raw == {"value": [1, 2], "timestamp": clock.now_ms, "ttl": 86_400_000}


def test_expired_entry_is_removed_once(clock):
    store = MagicMock(wraps=InMemoryStore())
    cache = LocalCacheManager(store, clock=clock)
    cache.set("w1", {"id": "w1"}, 1)

    clock.advance(5)

    assert cache.get("w1") is None
    store.remove_item.assert_called_once_with("vocab_cache_w1")


def test_expiry_boundary_is_strict(cache, clock):
    cache.set("w1", "v", 100)

    clock.advance(100)
    assert cache.get("w1") == "v"

    clock.advance(1)
    assert cache.get("w1") is None


def test_zero_ttl_falls_back_to_default_on_read(cache, clock):
    cache.set("w1", "v", 0)
    clock.advance(60_000)
    assert cache.get("w1") == "v"


def test_overwrite_refreshes_timestamp(cache, clock):
    cache.set("w1", "old", 100)
    clock.advance(90)
    cache.set("w1", "new", 100)
    clock.advance(90)
    assert cache.get("w1") == "new"


def test_hits_and_misses_are_counted(cache, clock):
    cache.set("w1", "v", 10)
    cache.get("w1")
    cache.get("missing")
    clock.advance(11)
    cache.get("w1")

    stats = cache.get_stats()
    assert stats.hits == 1
    assert stats.misses == 2
    assert stats.sets == 1


@pytest.mark.parametrize("raw", ["{oops", "[1, 2]", '{"value": 1}'])
def test_unreadable_entry_counts_error(cache, memory_store, raw):
    memory_store.set_item("vocab_cache_w1", raw)

    assert cache.get("w1") is None
    assert cache.get_stats().errors == 1


def test_oversize_value_is_skipped(memory_store, clock):
    cache = LocalCacheManager(memory_store, max_cache_size=1000, clock=clock)

    assert cache.set("big", "x" * 200) is False
    assert memory_store.get_item("vocab_cache_big") is None
    assert cache.get_stats().sets == 0


def test_unserializable_value_counts_error(cache):
    assert cache.set("w1", object()) is False
    assert cache.get_stats().errors == 1


# --- quota handling ---


def test_quota_exceeded_evicts_oldest_half_and_retries(clock):
    store = InMemoryStore()
    cache = LocalCacheManager(store, clock=clock)
    for i in range(10):
        cache.set(f"w{i}", f"value-{i}")
        clock.advance(10)

    store.quota_chars = store.used_chars() + 10

    assert cache.set("w10", "value-10") is True

    remaining = sorted(k for k in store.keys() if k != STATS_KEY)
    assert remaining == sorted(f"vocab_cache_w{i}" for i in range(5, 11))
    assert cache.get("w10") == "value-10"
    assert cache.get_stats().sets == 11


def test_write_failing_after_eviction_counts_error(clock):
    store = FullStore()
    cache = LocalCacheManager(store, clock=clock)

    assert cache.set("w1", "v") is False
    assert cache.get_stats().errors == 1


def test_evict_oldest_drops_unparseable_without_counting(cache, memory_store, clock):
    for i in range(4):
        cache.set(f"w{i}", i)
        clock.advance(1)
    memory_store.set_item("vocab_cache_bad", "not json")
    memory_store.set_item("foreign", "keep")

    assert cache.evict_oldest() == 2

    assert memory_store.get_item("vocab_cache_bad") is None
    assert memory_store.get_item("vocab_cache_w0") is None
    assert memory_store.get_item("vocab_cache_w1") is None
    assert cache.has("w2") and cache.has("w3")
    assert memory_store.get_item("foreign") == "keep"
    assert memory_store.get_item(STATS_KEY) is not None


def test_evict_oldest_on_empty_cache(cache):
    assert cache.evict_oldest() == 0


# --- remove / clear ---


def test_remove(cache):
    cache.set("w1", 1)
    cache.remove("w1")
    cache.remove("never-set")

    assert cache.get("w1") is None
    assert cache.get_stats().removes == 2


def test_remove_pattern(cache, memory_store):
    cache.set("review:a", 1)
    cache.set("review:b", 2)
    cache.set("word:review:c", 3)
    memory_store.set_item("review:foreign", "x")

    assert cache.remove_pattern("review:") == 2

    assert cache.has("word:review:c")
    assert memory_store.get_item("review:foreign") == "x"
    assert cache.get_stats().removes == 2


def test_clear_keeps_foreign_keys_and_counters(cache, memory_store):
    cache.set("a", 1)
    cache.set("b", 2)
    memory_store.set_item("settings", "{}")

    assert cache.clear() == 2

    assert set(memory_store.keys()) == {
        "settings",
        STATS_KEY,
    }
    stats = cache.get_stats()
    assert stats.total_entries == 0
    assert stats.sets == 2
    assert stats.clears == 1


def test_namespaces_are_isolated(memory_store, clock):
    words = LocalCacheManager(memory_store, namespace="words_", clock=clock)
    lists = LocalCacheManager(memory_store, namespace="lists_", clock=clock)
    words.set("a", 1)
    lists.set("a", 2)

    words.clear()

    assert words.get("a") is None
    assert lists.get("a") == 2


# --- has / stats ---


def test_has_does_not_touch_counters(cache, clock):
    cache.set("w1", 1, 10)
    before = cache.get_stats().counters()

    assert cache.has("w1")
    assert not cache.has("missing")
    clock.advance(11)
    assert not cache.has("w1")

    assert cache.get_stats().counters() == before


def test_has_removes_expired_entry(cache, memory_store, clock):
    cache.set("w1", 1, 10)
    clock.advance(11)
    cache.has("w1")
    assert memory_store.get_item("vocab_cache_w1") is None


def test_get_stats_snapshot_is_read_only(cache, memory_store, clock):
    cache.set("fresh", "x" * 10, 1000)
    cache.set("stale", "y", 10)
    clock.advance(500)

    stats = cache.get_stats()

    assert stats.total_entries == 2
    assert stats.valid_entries == 1
    assert stats.expired_entries == 1
    expected_size = 2 * sum(
        len(memory_store.get_item(k)) for k in ("vocab_cache_fresh", "vocab_cache_stale")
    )
    assert stats.size_in_bytes == expected_size
    assert stats.size_in_mb == round(expected_size / 1024 / 1024, 2)
    assert memory_store.get_item("vocab_cache_stale") is not None


def test_stats_persist_across_instances(cache, memory_store, clock):
    cache.set("w1", 1)
    cache.get("w1")

    reopened = LocalCacheManager(memory_store, clock=clock)

    stats = reopened.get_stats()
    assert stats.sets == 1
    assert stats.hits == 1
    assert stats.last_updated == clock.now_ms


def test_stats_key_is_reserved(cache, memory_store):
    cache.set("w1", 1)

    assert cache.set("_stats", {"fake": True}) is False
    assert cache.get("_stats") is None
    assert not cache.has("_stats")
    cache.remove("_stats")

    stats = cache.get_stats()
    assert stats.sets == 1
    assert stats.errors == 0
    assert stats.total_entries == 1
    assert json.loads(memory_store.get_item(STATS_KEY))["sets"] == 1
