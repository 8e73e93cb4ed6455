"""Tests for the in-memory dependency cache."""

import pytest

from deppack.analysis import DependencyCache, compute_hash
from deppack.errors import CacheError, ErrorKind


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


GRAPH = {"/p/a.py": ["/p/b.py"], "/p/b.py": []}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    c = DependencyCache(timeout=60, clock=clock)
    c.initialize()
    yield c
    c.cleanup()


class TestUninitialized:
    @pytest.mark.parametrize("call, operation", [
        (lambda c: c.get("k"), "read"),
        (lambda c: c.has("k"), "read"),
        (lambda c: c.set("k", {}), "write"),
        (lambda c: c.delete("k"), "delete"),
        (lambda c: c.clear(), "clear"),
    ])
    def test_fails_fast(self, call, operation):
        cache = DependencyCache()
        with pytest.raises(CacheError) as exc:
            call(cache)
        assert exc.value.kind is ErrorKind.CACHE
        assert exc.value.operation == operation

    def test_cleanup_uninitializes(self, cache):
        cache.cleanup()
        with pytest.raises(CacheError):
            cache.get("k")


class TestGetSet:
    def test_miss(self, cache):
        assert cache.get("k") is None
        assert cache.get_stats().misses == 1

    def test_hit(self, cache):
        cache.set("k", GRAPH)
        assert cache.get("k") == GRAPH
        stats = cache.get_stats()
        assert stats.hits == 1
        assert stats.size == 1

    def test_set_does_not_overwrite_live_entry(self, cache):
        cache.set("k", GRAPH)
        cache.set("k", {"/p/other.py": []})
        assert cache.get("k") == GRAPH

    def test_force_overwrites(self, cache):
        cache.set("k", GRAPH)
        cache.set("k", {"/p/other.py": []}, force=True)
        assert cache.get("k") == {"/p/other.py": []}

    def test_stored_graph_is_isolated(self, cache):
        graph = {"/p/a.py": ["/p/b.py"]}
        cache.set("k", graph)
        graph["/p/a.py"].append("/p/c.py")
        returned = cache.get("k")
        returned["/p/a.py"].clear()
        assert cache.get("k") == {"/p/a.py": ["/p/b.py"]}

    def test_hash_is_diagnostic(self, cache):
        cache.set("k", GRAPH)
        assert cache.entry("k").hash == compute_hash(GRAPH)
        assert compute_hash(GRAPH) == compute_hash(dict(reversed(list(GRAPH.items()))))

    def test_entry_timeout_recorded(self, clock):
        cache = DependencyCache(timeout=60, clock=clock)
        cache.initialize(timeout=30)
        cache.set("a", GRAPH)
        cache.set("b", GRAPH, timeout=5)
        assert cache.entry("a").timeout == 30
        assert cache.entry("b").timeout == 5


class TestExpiry:
    def test_get_evicts_stale_entry(self, cache, clock):
        cache.set("k", GRAPH)
        clock.advance(61)
        assert cache.get("k") is None
        assert len(cache) == 0
        stats = cache.get_stats()
        assert stats.invalidations == 1
        assert stats.misses == 1

    def test_entry_at_ttl_boundary_is_live(self, cache, clock):
        cache.set("k", GRAPH)
        clock.advance(60)
        assert cache.get("k") == GRAPH

    def test_has_evicts_stale_entry(self, cache, clock):
        cache.set("k", GRAPH)
        assert cache.has("k")
        clock.advance(61)
        assert cache.has("k") is False
        assert len(cache) == 0

    def test_timeout_override_on_get(self, cache, clock):
        cache.set("k", GRAPH)
        clock.advance(10)
        assert cache.get("k", timeout=5) is None

    def test_write_after_expiry_replaces(self, cache, clock):
        cache.set("k", GRAPH)
        clock.advance(61)
        cache.get("k")
        cache.set("k", {"/p/new.py": []})
        assert cache.get("k") == {"/p/new.py": []}


class TestDeleteClear:
    def test_delete(self, cache):
        cache.set("k", GRAPH)
        cache.delete("k")
        assert cache.get("k") is None
        assert cache.get_stats().size == 0
        cache.delete("k")

    def test_clear_resets_stats(self, cache):
        cache.set("a", GRAPH)
        cache.set("b", GRAPH)
        cache.get("a")
        cache.get("zzz")
        cache.clear()
        stats = cache.get_stats()
        assert stats.size == 0
        assert stats.hits == 0
        assert stats.misses == 0
        assert stats.invalidations == 0
        assert stats.oldest_entry is None
        assert stats.average_age == 0

    def test_age_stats(self, cache, clock):
        cache.set("a", GRAPH)
        clock.advance(10)
        cache.set("b", GRAPH)
        stats = cache.get_stats()
        assert stats.oldest_entry == 1000.0
        assert stats.average_age == pytest.approx(5.0)
