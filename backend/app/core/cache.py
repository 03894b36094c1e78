"""
Query Result Cache

In-process cache for query results, shared by every request handler of the
process. Entries expire lazily: an entry older than its TTL is deleted the
next time it is read. There is no background sweep.

Keys are plain strings, normally prefixed with the tenant id
(e.g. "shop1:product:section:abc:20"), so a whole tenant or entity type can be
dropped with a substring invalidation.

Author: TM3
Date: 2026-10-19
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached payload with its creation time and time-to-live (seconds)"""
    data: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class QueryCache:
    """
    Time-bounded query result cache with hit/miss accounting.

    Staleness up to the TTL window is accepted. Concurrent get/set on the
    same key is last-writer-wins.
    """

    # Cache TTL in seconds (5 minutes)
    DEFAULT_TTL = 300

    def __init__(self, default_ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl if default_ttl is not None else self.DEFAULT_TTL
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._reset_counters()

    def _reset_counters(self):
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._invalidations = 0

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value for key, or None when absent or expired.

        An expired entry is deleted and counted both as a miss and as an
        invalidation.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            self._invalidations += 1
            return None

        self._hits += 1
        return entry.data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Store data under key, replacing any previous entry"""
        self._entries[key] = CacheEntry(
            data=data,
            timestamp=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        self._sets += 1

    def invalidate(self, pattern: str) -> int:
        """
        Delete every entry whose key contains pattern.

        Returns:
            Number of entries removed
        """
        matching = [key for key in self._entries if pattern in key]
        for key in matching:
            del self._entries[key]
        self._invalidations += len(matching)

        if matching:
            logger.debug(f"Invalidated {len(matching)} cache entries matching '{pattern}'")
        return len(matching)

    def clear(self) -> None:
        """Drop all entries and reset the counters"""
        self._entries.clear()
        self._reset_counters()

    def keys(self) -> List[str]:
        """Keys currently stored (expired entries may still be listed until read)"""
        return list(self._entries.keys())

    def stats(self) -> Dict[str, Any]:
        """
        Cache statistics

        Returns:
            Dict with hits, misses, sets, invalidations, total lookups,
            hit_rate (percentage, two decimals) and current_size (live entries)
        """
        now = self._clock()
        total = self._hits + self._misses
        hit_rate = round(self._hits / total * 100, 2) if total > 0 else 0.0

        return {
            'hits': self._hits,
            'misses': self._misses,
            'sets': self._sets,
            'invalidations': self._invalidations,
            'total': total,
            'hit_rate': hit_rate,
            'current_size': sum(1 for entry in self._entries.values() if not entry.is_expired(now)),
        }
