"""Centralized constants for wordwise.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Review scheduling ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3

# ---------- SM-2 ----------
SM2_INITIAL_INTERVALS = (1, 6)  # days for the first two successful reviews
SM2_PASSING_QUALITY = 3
SM2_MAX_QUALITY = 5

# ---------- Local cache ----------
CACHE_NAMESPACE = "vocab_cache_"
CACHE_STATS_SUFFIX = "_stats"
CACHE_DEFAULT_TTL_MS = 24 * 60 * 60 * 1000
CACHE_MAX_SIZE = 5 * 1024 * 1024
BYTES_PER_CHAR = 2  # UTF-16 storage cost

# ---------- Remote document store ----------
FETCH_BATCH_SIZE = 10
REQUEST_TIMEOUT = 30.0
REVIEW_CACHE_PREFIX = "review:"
