"""TTL- and capacity-bounded memo of search results."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 5 * 60.0
DEFAULT_MAX_ENTRIES = 100
EXCLUDED_KEY_FIELDS = frozenset({"reasoning", "explanation"})


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    """Cached value with insertion time and per-entry hit count."""

    value: V
    inserted_at: float
    hit_count: int = 0


@dataclass(slots=True, frozen=True)
class CacheStats:
    """Aggregate cache counters."""

    hits: int
    misses: int
    size: int
    hit_rate: float


def cache_key(tool_name: str, params: Mapping[str, object]) -> str:
    """Build a fingerprint that ignores field order and free-text reasoning."""
    relevant = {key: value for key, value in params.items() if key not in EXCLUDED_KEY_FIELDS}
    return f"{tool_name}:{json.dumps(relevant, sort_keys=True, default=str)}"


class QueryCache(Generic[V]):
    """In-memory result cache with lazy and swept TTL expiry.

    Capacity eviction removes the entry with the oldest insertion time. Hits do
    not refresh an entry's position, so this is FIFO rather than LRU.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        """Return configured time-to-live."""
        return self._ttl

    @property
    def max_entries(self) -> int:
        """Return configured capacity."""
        return self._max_entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_stale(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.inserted_at > self._ttl

    def get(self, key: str) -> V | None:
        """Return a fresh cached value, or None on miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._is_stale(entry, self._clock()):
                del self._entries[key]
                self._misses += 1
                return None
            entry.hit_count += 1
            self._hits += 1
            return entry.value

    def set(self, key: str, value: V) -> None:
        """Store a value, evicting the oldest insertion when full."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                self._evict_oldest()
            self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def has(self, key: str) -> bool:
        """Return True for a fresh entry without touching hit/miss counters."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self._is_stale(entry, self._clock()):
                del self._entries[key]
                return False
            return True

    def cleanup(self) -> int:
        """Evict every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if self._is_stale(entry, now)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def stats(self) -> CacheStats:
        """Return hit/miss counters and current size."""
        with self._lock:
            accesses = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._entries),
                hit_rate=self._hits / accesses if accesses else 0.0,
            )

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def _evict_oldest(self) -> None:
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda item: self._entries[item].inserted_at)
        del self._entries[oldest_key]
