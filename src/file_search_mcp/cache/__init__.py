"""Query result caching."""

from .query_cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    CacheStats,
    QueryCache,
    cache_key,
)
from .sweeper import DEFAULT_SWEEP_INTERVAL_SECONDS, CacheSweeper

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheSweeper",
    "DEFAULT_MAX_ENTRIES",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "DEFAULT_TTL_SECONDS",
    "QueryCache",
    "cache_key",
]
