# Domain Cache Package
from .models import COUNTER_FIELDS, CacheEntry, CacheStats
from .ports import KeyValueStore, QuotaExceededError, StorageError

__all__ = [
    "CacheEntry",
    "CacheStats",
    "COUNTER_FIELDS",
    "KeyValueStore",
    "QuotaExceededError",
    "StorageError",
]
