"""
Unit tests for tagged cache backends.
"""

import pytest
import fakeredis
from prometheus_client import CollectorRegistry

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_datastore.app.caching.backends import InMemoryTaggedCache, NullTaggedCache, RedisTaggedCache
from shared.metrics import MetricsCollector


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def metrics():
    return MetricsCollector(CollectorRegistry())


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis()


@pytest.fixture(params=["memory", "redis"])
def tagged_cache(request, metrics, redis_client):
    """Each backend under the same contract."""
    if request.param == "memory":
        return InMemoryTaggedCache(metrics=metrics)
    return RedisTaggedCache(redis_client, prefix="test", metrics=metrics)


class TestTaggedCacheContract:
    """Behavior shared by every backend."""

    def test_miss(self, tagged_cache):
        """Test that an unknown key is a miss."""
        assert tagged_cache.get("missing") == (False, None)

    def test_set_then_get(self, tagged_cache):
        """Test storing and reading back a value."""
        tagged_cache.set("k1", {"href": "h1", "name": "n"}, ["t1"])

        assert tagged_cache.get("k1") == (True, {"href": "h1", "name": "n"})

    def test_delete(self, tagged_cache):
        """Test removing a single entry."""
        tagged_cache.set("k1", {"a": 1}, ["t1"])
        tagged_cache.set("k2", {"b": 2}, ["t1"])

        tagged_cache.delete("k1")

        assert tagged_cache.get("k1")[0] is False
        assert tagged_cache.get("k2")[0] is True

    def test_clear_by_tags_removes_every_tagged_entry(self, tagged_cache):
        """Test bulk invalidation by tag."""
        tagged_cache.set("k1", {"a": 1}, ["t1", "t2"])
        tagged_cache.set("k2", {"b": 2}, ["t2"])
        tagged_cache.set("k3", {"c": 3}, ["t3"])

        removed = tagged_cache.clear_by_tags(["t2"])

        assert removed == 2
        assert tagged_cache.get("k1")[0] is False
        assert tagged_cache.get("k2")[0] is False
        assert tagged_cache.get("k3") == (True, {"c": 3})

    def test_clear_by_unknown_tag(self, tagged_cache):
        """Test that clearing an unused tag removes nothing."""
        tagged_cache.set("k1", {"a": 1}, ["t1"])

        assert tagged_cache.clear_by_tags(["nope"]) == 0
        assert tagged_cache.get("k1")[0] is True

    def test_overwrite_replaces_tags(self, tagged_cache):
        """Test that re-setting a key drops its old tag memberships."""
        tagged_cache.set("k1", {"v": 1}, ["old"])
        tagged_cache.set("k1", {"v": 2}, ["new"])

        assert tagged_cache.clear_by_tags(["old"]) == 0
        assert tagged_cache.get("k1") == (True, {"v": 2})
        assert tagged_cache.clear_by_tags(["new"]) == 1

    def test_cleared_entry_leaves_no_membership_in_other_tags(self, tagged_cache):
        """Test that re-tagging after a clear is not undone by an old tag."""
        tagged_cache.set("k", {"href": "x1"}, ["A", "B"])
        assert tagged_cache.clear_by_tags(["A"]) == 1

        tagged_cache.set("k", {"href": "x2"}, ["C"])

        assert tagged_cache.clear_by_tags(["B"]) == 0
        assert tagged_cache.get("k") == (True, {"href": "x2"})
        assert tagged_cache.clear_by_tags(["C"]) == 1

    def test_clear_all(self, tagged_cache):
        """Test clearing every entry."""
        tagged_cache.set("k1", {"a": 1}, ["t1"])
        tagged_cache.set("k2", {"b": 2})

        tagged_cache.clear_all()

        assert tagged_cache.get("k1")[0] is False
        assert tagged_cache.get("k2")[0] is False

    def test_records_hits_and_misses(self, tagged_cache, metrics):
        """Test cache operation metrics."""
        tagged_cache.set("k1", {"a": 1})
        tagged_cache.get("k1")
        tagged_cache.get("k2")

        backend = tagged_cache.backend_name
        assert metrics.get_sample_value("datastore_cache_operations_total", backend=backend, result="hit") == 1.0
        assert metrics.get_sample_value("datastore_cache_operations_total", backend=backend, result="miss") == 1.0


class TestInMemoryTaggedCache:
    """Test cases specific to InMemoryTaggedCache."""

    def test_values_are_isolated_copies(self, metrics):
        """Test that callers cannot mutate cached state."""
        cache = InMemoryTaggedCache(metrics=metrics)
        value = {"href": "h", "nested": {"a": 1}}
        cache.set("k", value)

        value["nested"]["a"] = 2
        _, cached = cache.get("k")
        cached["nested"]["a"] = 3

        assert cache.get("k") == (True, {"href": "h", "nested": {"a": 1}})

    def test_ttl_expiry(self, metrics):
        """Test that entries expire after their ttl."""
        clock = FakeClock()
        cache = InMemoryTaggedCache(default_ttl=60, metrics=metrics, clock=clock)
        cache.set("k", {"a": 1}, ["t"])

        clock.now += 59
        assert cache.get("k")[0] is True

        clock.now += 2
        assert cache.get("k")[0] is False
        assert len(cache) == 0

    def test_expired_entries_not_counted_as_cleared(self, metrics):
        clock = FakeClock()
        cache = InMemoryTaggedCache(default_ttl=10, metrics=metrics, clock=clock)
        cache.set("k", {"a": 1}, ["t"])

        clock.now += 11

        assert cache.clear_by_tags(["t"]) == 0
        assert len(cache) == 0

    def test_namespace(self, metrics):
        """Test that namespaces keep caches apart in one process."""
        cache = InMemoryTaggedCache(namespace="a", metrics=metrics)
        cache.set("k", {"a": 1})

        assert "k" in cache
        assert len(cache) == 1


class TestRedisTaggedCache:
    """Test cases specific to RedisTaggedCache."""

    def test_key_layout(self, redis_client, metrics):
        """Test the documented key layout."""
        cache = RedisTaggedCache(redis_client, prefix="p", metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1"])

        assert redis_client.exists("p:item:k1") == 1
        assert redis_client.smembers("p:tags:k1") == {b"t1"}
        assert redis_client.smembers("p:tag:t1") == {b"k1"}

    def test_ttl(self, redis_client, metrics):
        """Test that ttl is applied to the item."""
        cache = RedisTaggedCache(redis_client, prefix="p", default_ttl=120, metrics=metrics)
        cache.set("k1", {"a": 1})

        assert 0 < redis_client.ttl("p:item:k1") <= 120

    def test_tag_sets_expire_with_longest_lived_member(self, redis_client, metrics):
        """Test that tag sets carry a ttl and never outlive every member."""
        cache = RedisTaggedCache(redis_client, prefix="p", default_ttl=60, metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1"])
        assert 0 < redis_client.ttl("p:tag:t1") <= 60

        cache.set("k2", {"b": 2}, ["t1"], ttl=600)
        assert redis_client.ttl("p:tag:t1") > 60

        cache.set("k3", {"c": 3}, ["t1"], ttl=30)
        assert redis_client.ttl("p:tag:t1") > 60

    def test_tag_sets_without_ttl_persist(self, redis_client, metrics):
        cache = RedisTaggedCache(redis_client, prefix="p", default_ttl=60, metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1"])
        cache.set("k2", {"b": 2}, ["t1"], ttl=0)

        assert redis_client.ttl("p:tag:t1") == -1

    def test_clear_by_tags_drops_other_memberships(self, redis_client, metrics):
        """Test that a cleared key is removed from every tag set it was in."""
        cache = RedisTaggedCache(redis_client, prefix="p", metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1", "t2"])

        cache.clear_by_tags(["t1"])

        assert redis_client.smembers("p:tag:t2") == set()
        assert redis_client.exists("p:tags:k1") == 0

    def test_stale_member_not_counted(self, redis_client, metrics):
        """Test that a tag member whose item dropped the tag is skipped."""
        cache = RedisTaggedCache(redis_client, prefix="p", metrics=metrics)
        cache.set("k1", {"a": 1}, ["t2"])
        redis_client.sadd("p:tag:t1", "k1")

        assert cache.clear_by_tags(["t1"]) == 0
        assert cache.get("k1") == (True, {"a": 1})

    def test_clear_all_only_touches_prefix(self, redis_client, metrics):
        """Test that clear_all leaves foreign keys alone."""
        redis_client.set("other:key", "keep")
        cache = RedisTaggedCache(redis_client, prefix="p", metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1"])

        cache.clear_all()

        assert redis_client.get("other:key") == b"keep"
        assert list(redis_client.scan_iter(match="p:*")) == []

    def test_delete_drops_tag_membership(self, redis_client, metrics):
        """Test that delete cleans the tag index."""
        cache = RedisTaggedCache(redis_client, prefix="p", metrics=metrics)
        cache.set("k1", {"a": 1}, ["t1"])

        cache.delete("k1")

        assert redis_client.smembers("p:tag:t1") == set()


class TestNullTaggedCache:
    """Test cases for NullTaggedCache."""

    def test_never_hits(self):
        cache = NullTaggedCache()
        cache.set("k", {"a": 1}, ["t"])

        assert cache.get("k") == (False, None)
        assert cache.clear_by_tags(["t"]) == 0
