"""
Local cache manager — TTL cache on top of a shared persistent key/value store.

Every key is stored under a fixed namespace prefix. Storage failures never
escape get/set/has; they are logged and counted in the persisted stats.
"""

import json
import logging
import math
import re
import time
from collections.abc import Callable
from typing import Any

from wordwise.domain.cache.models import COUNTER_FIELDS, CacheEntry, CacheStats
from wordwise.domain.cache.ports import KeyValueStore, QuotaExceededError, StorageError
from wordwise.domain.constants import (
    BYTES_PER_CHAR,
    CACHE_DEFAULT_TTL_MS,
    CACHE_MAX_SIZE,
    CACHE_NAMESPACE,
    CACHE_STATS_SUFFIX,
)

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


class LocalCacheManager:
    """
    Namespaced TTL cache with oldest-first eviction under quota pressure.

    Expired entries are removed lazily on read. When the store reports a full
    quota, the oldest half of the entries (by write time, not access time) is
    evicted and the write is retried once.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str = CACHE_NAMESPACE,
        default_ttl_ms: int = CACHE_DEFAULT_TTL_MS,
        max_cache_size: int = CACHE_MAX_SIZE,
        clock: Callable[[], int] | None = None,
    ):
        """
        Args:
            store: The shared persistent store (port).
            namespace: Prefix isolating this cache's keys.
            default_ttl_ms: Lifetime for entries written without an explicit ttl.
            max_cache_size: Total budget in characters; a single entry may use 1/10.
            clock: Returns the current time in epoch milliseconds.
        """
        self._store = store
        self.namespace = namespace
        self.default_ttl_ms = default_ttl_ms
        self.max_cache_size = max_cache_size
        self._clock = clock or epoch_millis
        self._stats_key = namespace + CACHE_STATS_SUFFIX

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing, expired or unreadable."""
        cache_key = self.namespace + key
        try:
            raw = None if self._is_reserved(cache_key) else self._store.get_item(cache_key)
            if raw is None:
                self._update_stats("misses")
                return None

            entry = self._decode(raw)
            if entry.is_expired(self._clock()):
                self._store.remove_item(cache_key)
                self._update_stats("misses")
                return None

            self._update_stats("hits")
            return entry.value
        except (StorageError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Error reading cache key '{key}': {e}")
            self._update_stats("errors")
            return None

    def set(self, key: str, value: Any, ttl_ms: int | None = None) -> bool:
        """
        Cache value under key.

        Best-effort: returns False instead of raising when the value is too
        large, cannot be serialized, or the store rejects it even after
        eviction.
        """
        cache_key = self.namespace + key
        if self._is_reserved(cache_key):
            logger.warning(f"Cache key '{key}' is reserved for stats")
            return False

        entry = CacheEntry(
            value=value,
            timestamp=self._clock(),
            ttl=ttl_ms if ttl_ms is not None else self.default_ttl_ms,
        )

        try:
            serialized = json.dumps(entry.to_dict())

            if len(serialized) > self.max_cache_size // 10:
                logger.warning(f"Data too large to cache: {key}")
                return False

            try:
                self._store.set_item(cache_key, serialized)
            except QuotaExceededError:
                evicted = self.evict_oldest()
                logger.info(f"Quota exceeded writing '{key}', evicted {evicted} entries")
                self._store.set_item(cache_key, serialized)

            self._update_stats("sets")
            return True
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Error setting cache key '{key}': {e}")
            self._update_stats("errors")
            return False

    def remove(self, key: str) -> None:
        cache_key = self.namespace + key
        if self._is_reserved(cache_key):
            return
        self._store.remove_item(cache_key)
        self._update_stats("removes")

    def remove_pattern(self, pattern: str) -> int:
        """
        Remove every entry whose full key matches namespace + pattern.

        The pattern is a regular expression fragment searched against the
        namespaced key.
        """
        regex = re.compile(re.escape(self.namespace) + pattern)
        removed = 0
        for cache_key in self._entry_keys():
            if regex.search(cache_key):
                self._store.remove_item(cache_key)
                removed += 1

        if removed:
            self._update_stats("removes", removed)
        logger.debug(f"Removed {removed} entries matching '{pattern}'")
        return removed

    def clear(self) -> int:
        """Remove every namespaced entry. Foreign keys and counters are kept."""
        keys = self._entry_keys()
        for cache_key in keys:
            self._store.remove_item(cache_key)
        self._update_stats("clears")
        return len(keys)

    def has(self, key: str) -> bool:
        cache_key = self.namespace + key
        if self._is_reserved(cache_key):
            return False
        try:
            raw = self._store.get_item(cache_key)
            if raw is None:
                return False
            entry = self._decode(raw)
            if entry.is_expired(self._clock()):
                self._store.remove_item(cache_key)
                return False
            return True
        except (StorageError, ValueError, KeyError, TypeError):
            return False

    def get_stats(self) -> CacheStats:
        """
        Scan the namespace and merge the snapshot with the persisted counters.

        Read-only: expired entries are counted, not deleted.
        """
        now = self._clock()
        keys = self._entry_keys()

        total_size = 0
        valid = 0
        expired = 0

        for cache_key in keys:
            try:
                raw = self._store.get_item(cache_key) or ""
                total_size += len(raw) * BYTES_PER_CHAR
                if self._decode(raw).is_expired(now):
                    expired += 1
                else:
                    valid += 1
            except (StorageError, ValueError, KeyError, TypeError):
                continue

        stats = self._load_stats()
        stats.total_entries = len(keys)
        stats.valid_entries = valid
        stats.expired_entries = expired
        stats.size_in_bytes = total_size
        stats.size_in_mb = round(total_size / 1024 / 1024, 2)
        return stats

    def evict_oldest(self) -> int:
        """
        Delete the oldest half of the entries by write timestamp.

        Entries that cannot be parsed are deleted outright and do not count
        toward the half.

        Returns:
            Number of parseable entries evicted.
        """
        items: list[tuple[int, str]] = []

        for cache_key in self._entry_keys():
            try:
                data = json.loads(self._store.get_item(cache_key) or "{}")
                items.append((int(data.get("timestamp") or 0), cache_key))
            except (ValueError, TypeError, AttributeError):
                self._store.remove_item(cache_key)

        if not items:
            return 0

        items.sort(key=lambda item: item[0])
        to_delete = math.ceil(len(items) / 2)
        for _, cache_key in items[:to_delete]:
            self._store.remove_item(cache_key)

        logger.info(f"Cleared {to_delete} old cache entries")
        return to_delete

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_reserved(self, cache_key: str) -> bool:
        return cache_key == self._stats_key

    def _entry_keys(self) -> list[str]:
        return [
            k
            for k in self._store.keys()
            if k.startswith(self.namespace) and not self._is_reserved(k)
        ]

    def _decode(self, raw: str) -> CacheEntry:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("cache entry is not a JSON object")
        ttl = data.get("ttl") or self.default_ttl_ms
        return CacheEntry(value=data["value"], timestamp=int(data["timestamp"]), ttl=int(ttl))

    def _load_stats(self) -> CacheStats:
        try:
            saved = self._store.get_item(self._stats_key)
            if saved:
                data = json.loads(saved)
                return CacheStats(
                    **{name: int(data.get(name, 0)) for name in COUNTER_FIELDS},
                    last_updated=int(data.get("last_updated", 0)),
                )
        except (StorageError, ValueError, TypeError, AttributeError):
            pass
        return CacheStats(last_updated=self._clock())

    def _update_stats(self, counter: str, amount: int = 1) -> None:
        stats = self._load_stats()
        setattr(stats, counter, getattr(stats, counter) + amount)
        stats.last_updated = self._clock()

        payload = {**stats.counters(), "last_updated": stats.last_updated}
        try:
            self._store.set_item(self._stats_key, json.dumps(payload))
        except StorageError as e:
            # Stats are best-effort
            logger.debug(f"Could not persist cache stats: {e}")
