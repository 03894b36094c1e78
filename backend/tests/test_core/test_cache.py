"""
Unit tests for QueryCache

TTL expiry, substring invalidation and statistics, driven by a fake clock.
"""
from app.core.cache import QueryCache


class TestQueryCacheTTL:
    """Entries live for exactly their TTL"""

    def test_get_returns_value_within_ttl(self, query_cache, clock):
        query_cache.set("shop1:k", [1, 2], ttl=10)
        clock.advance(5)

        assert query_cache.get("shop1:k") == [1, 2]

    def test_entry_is_still_valid_at_exact_ttl(self, query_cache, clock):
        query_cache.set("shop1:k", "v", ttl=10)
        clock.advance(10)

        assert query_cache.get("shop1:k") == "v"

    def test_expired_entry_is_a_miss_and_counted_once(self, query_cache, clock):
        query_cache.set("shop1:k", "v", ttl=10)
        clock.advance(10.5)

        assert query_cache.get("shop1:k") is None
        assert query_cache.get("shop1:k") is None

        stats = query_cache.stats()
        assert stats['misses'] == 2
        assert stats['invalidations'] == 1
        assert "shop1:k" not in query_cache.keys()

    def test_default_ttl_used_when_none_given(self, clock):
        cache = QueryCache(default_ttl=60, clock=clock)
        cache.set("k", "v")

        clock.advance(61)
        assert cache.get("k") is None

    def test_set_replaces_entry_and_restarts_ttl(self, query_cache, clock):
        query_cache.set("k", "old", ttl=10)
        clock.advance(8)
        query_cache.set("k", "new", ttl=10)
        clock.advance(8)

        assert query_cache.get("k") == "new"


class TestQueryCacheInvalidation:

    def test_invalidate_removes_keys_containing_pattern(self, query_cache):
        query_cache.set("shop1:product:section:a:20", 1)
        query_cache.set("shop1:product:p1:base", 2)
        query_cache.set("shop1:section:with_counts", 3)
        query_cache.set("shop2:product:p1:base", 4)

        removed = query_cache.invalidate("shop1:product")

        assert removed == 2
        assert sorted(query_cache.keys()) == ["shop1:section:with_counts", "shop2:product:p1:base"]
        assert query_cache.stats()['invalidations'] == 2

    def test_invalidate_without_matches_returns_zero(self, query_cache):
        query_cache.set("shop1:order:lookup::0901", [])

        assert query_cache.invalidate("shop9") == 0
        assert query_cache.stats()['invalidations'] == 0

    def test_clear_drops_entries_and_resets_counters(self, query_cache):
        query_cache.set("a", 1)
        query_cache.get("a")
        query_cache.get("b")

        query_cache.clear()

        assert query_cache.keys() == []
        assert query_cache.stats() == {
            'hits': 0,
            'misses': 0,
            'sets': 0,
            'invalidations': 0,
            'total': 0,
            'hit_rate': 0.0,
            'current_size': 0,
        }


class TestQueryCacheStats:

    def test_hit_rate_is_percentage_with_two_decimals(self, query_cache):
        query_cache.set("a", 1)
        query_cache.get("a")
        query_cache.get("missing")
        query_cache.get("missing")

        stats = query_cache.stats()
        assert stats['hits'] == 1
        assert stats['misses'] == 2
        assert stats['sets'] == 1
        assert stats['total'] == 3
        assert stats['hit_rate'] == 33.33

    def test_hit_rate_zero_without_lookups(self, query_cache):
        assert query_cache.stats()['hit_rate'] == 0.0

    def test_current_size_counts_only_live_entries(self, query_cache, clock):
        query_cache.set("short", 1, ttl=5)
        query_cache.set("long", 2, ttl=100)
        clock.advance(10)

        stats = query_cache.stats()
        assert stats['current_size'] == 1
        # stats() does not evict, so reading the expired key still counts it
        assert stats['invalidations'] == 0
        assert query_cache.get("short") is None
        assert query_cache.stats()['invalidations'] == 1

    def test_cached_empty_result_is_a_hit(self, query_cache):
        query_cache.set("shop1:section:with_counts", [])

        assert query_cache.get("shop1:section:with_counts") == []
        assert query_cache.stats()['hits'] == 1
