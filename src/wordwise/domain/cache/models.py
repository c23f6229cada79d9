"""
Domain models for the local persistent cache.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import asdict, dataclass
from typing import Any

from wordwise.domain.constants import CACHE_DEFAULT_TTL_MS

COUNTER_FIELDS = ("hits", "misses", "sets", "removes", "clears", "errors")


@dataclass
class CacheEntry:
    """
    A single cached payload.

    Attributes:
        value: Any JSON-serializable payload.
        timestamp: Creation time in epoch milliseconds.
        ttl: Lifetime in milliseconds.
    """

    value: Any
    timestamp: int
    ttl: int = CACHE_DEFAULT_TTL_MS

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.timestamp > self.ttl

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "timestamp": self.timestamp, "ttl": self.ttl}


@dataclass
class CacheStats:
    """
    Cache counters plus a point-in-time snapshot of the stored entries.

    The counters only ever grow and are persisted alongside the entries.
    The snapshot fields are recomputed on every query.
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    removes: int = 0
    clears: int = 0
    errors: int = 0
    last_updated: int = 0

    # Snapshot
    total_entries: int = 0
    valid_entries: int = 0
    expired_entries: int = 0
    size_in_bytes: int = 0
    size_in_mb: float = 0.0

    def counters(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
