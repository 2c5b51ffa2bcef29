"""
Tagged key-value cache backends for the data store.

Every backend stores plain JSON-compatible values under a normalized key and
remembers which tags each entry carries, so that a whole group of entries can
be dropped by tag. All operations are safe to call from several threads.
"""

import copy
import json
import threading
import time
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Set, Tuple

from redis import Redis

from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector


class TaggedCache(Protocol):
    """Cache capability consumed by the data store."""

    def get(self, key: str) -> Tuple[bool, Any]:
        ...

    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def clear_by_tags(self, tags: Iterable[str]) -> int:
        ...

    def clear_all(self) -> None:
        ...


class NullTaggedCache:
    """Cache that never stores anything; every read is a miss."""

    backend_name = "none"

    def get(self, key: str) -> Tuple[bool, Any]:
        return False, None

    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def clear_by_tags(self, tags: Iterable[str]) -> int:
        return 0

    def clear_all(self) -> None:
        return None


class InMemoryTaggedCache:
    """Process-local tagged cache for tests, scripts and single-process use."""

    backend_name = "memory"

    def __init__(
        self,
        namespace: str = "",
        default_ttl: Optional[int] = None,
        *,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ns = (namespace + ":") if namespace else ""
        self.default_ttl = default_ttl
        self.metrics = metrics or get_metrics_collector()
        self.logger = get_logger("datastore.cache.memory")
        self._clock = clock
        self._lock = threading.RLock()

        self._items: Dict[str, Tuple[Any, Optional[float]]] = {}  # key -> (value, expires_at)
        self._item_tags: Dict[str, Set[str]] = {}
        self._tag_index: Dict[str, Set[str]] = {}

    def _k(self, key: str) -> str:
        return self._ns + key

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: str) -> bool:
        hit, _ = self.get(key)
        return hit

    def get(self, key: str) -> Tuple[bool, Any]:
        k = self._k(key)
        with self._lock:
            entry = self._items.get(k)
            if entry is not None and entry[1] is not None and entry[1] <= self._clock():
                self._remove(k)
                entry = None

            if entry is None:
                self._record("miss")
                return False, None

            self._record("hit")
            return True, copy.deepcopy(entry[0])

    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        k = self._k(key)
        ttl = self.default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl if ttl else None
        tag_set = set(tags)

        with self._lock:
            self._remove(k)
            self._items[k] = (copy.deepcopy(value), expires_at)
            self._item_tags[k] = tag_set
            for tag in tag_set:
                self._tag_index.setdefault(tag, set()).add(k)

        self._record("set")
        self.logger.debug("Cached value", key=key, tags=len(tag_set), ttl=ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(self._k(key))
        self._record("delete")

    def clear_by_tags(self, tags: Iterable[str]) -> int:
        removed = 0
        with self._lock:
            now = self._clock()
            for tag in set(tags):
                for k in self._tag_index.pop(tag, set()):
                    entry = self._items.get(k)
                    if entry is not None:
                        self._remove(k)
                        if entry[1] is None or entry[1] > now:
                            removed += 1

        self._record("clear")
        self.logger.debug("Cleared cache tags", removed=removed)
        return removed

    def clear_all(self) -> None:
        with self._lock:
            self._items.clear()
            self._item_tags.clear()
            self._tag_index.clear()

        self._record("clear")
        self.logger.info("Cache cleared")

    def _remove(self, k: str) -> None:
        """Drop an entry and its tag memberships; caller holds the lock."""
        self._items.pop(k, None)
        for tag in self._item_tags.pop(k, set()):
            members = self._tag_index.get(tag)
            if members is not None:
                members.discard(k)
                if not members:
                    del self._tag_index[tag]

    def _record(self, result: str) -> None:
        self.metrics.increment_counter(
            "datastore_cache_operations_total", backend=self.backend_name, result=result
        )


class RedisTaggedCache:
    """Redis-backed tagged cache.

    Keys (with prefix):
      - {p}:item:{key} (STRING)  JSON-encoded value
      - {p}:tags:{key} (SET)     tags carried by the item
      - {p}:tag:{tag}  (SET)     item keys carrying the tag

    Multi-key updates run inside MULTI/EXEC pipelines.
    """

    backend_name = "redis"

    def __init__(
        self,
        client: Redis,
        *,
        prefix: str = "datastore",
        default_ttl: Optional[int] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._r = client
        self._p = prefix
        self.default_ttl = default_ttl
        self.metrics = metrics or get_metrics_collector()
        self.logger = get_logger("datastore.cache.redis")

    @classmethod
    def from_redis_url(cls, redis_url: str, **kwargs) -> "RedisTaggedCache":
        """Build a cache over a new client for ``redis_url``."""
        client = Redis.from_url(
            redis_url,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        return cls(client, **kwargs)

    # Key helpers
    def _item_key(self, key: str) -> str:
        return f"{self._p}:item:{key}"

    def _item_tags_key(self, key: str) -> str:
        return f"{self._p}:tags:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._p}:tag:{tag}"

    def _tag_ttls(self, tags: Iterable[str]) -> list:
        pipe = self._r.pipeline(transaction=False)
        for tag in tags:
            pipe.ttl(self._tag_key(tag))
        return pipe.execute()

    @staticmethod
    def _decode(value: Any) -> str:
        return value.decode() if isinstance(value, (bytes, bytearray)) else str(value)

    def get(self, key: str) -> Tuple[bool, Any]:
        raw = self._r.get(self._item_key(key))
        if raw is None:
            self._record("miss")
            return False, None

        self._record("hit")
        return True, json.loads(raw)

    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        tag_list = sorted(set(tags))
        item_tags_key = self._item_tags_key(key)
        previous = {self._decode(tag) for tag in self._r.smembers(item_tags_key)}
        tag_ttls = self._tag_ttls(tag_list) if ttl else []

        pipe = self._r.pipeline(transaction=True)
        for tag in previous.difference(tag_list):
            pipe.srem(self._tag_key(tag), key)
        pipe.set(self._item_key(key), json.dumps(value), ex=ttl or None)
        pipe.delete(item_tags_key)
        if tag_list:
            pipe.sadd(item_tags_key, *tag_list)
            if ttl:
                pipe.expire(item_tags_key, ttl)
        for tag in tag_list:
            pipe.sadd(self._tag_key(tag), key)
        # a tag set lives as long as its longest-lived member; -1 means no expiry
        if ttl:
            for tag, current in zip(tag_list, tag_ttls):
                if current != -1 and current < ttl:
                    pipe.expire(self._tag_key(tag), ttl)
        else:
            for tag in tag_list:
                pipe.persist(self._tag_key(tag))
        pipe.execute()

        self._record("set")
        self.logger.debug("Cached value", key=key, tags=len(tag_list), ttl=ttl)

    def delete(self, key: str) -> None:
        item_tags_key = self._item_tags_key(key)
        tags = [self._decode(tag) for tag in self._r.smembers(item_tags_key)]

        pipe = self._r.pipeline(transaction=True)
        pipe.delete(self._item_key(key), item_tags_key)
        for tag in tags:
            pipe.srem(self._tag_key(tag), key)
        pipe.execute()

        self._record("delete")

    def clear_by_tags(self, tags: Iterable[str]) -> int:
        tag_list = list(set(tags))
        if not tag_list:
            return 0

        listed_under: Dict[str, Set[str]] = {}
        for tag in tag_list:
            for member in self._r.smembers(self._tag_key(tag)):
                listed_under.setdefault(self._decode(member), set()).add(tag)

        # members whose item no longer carries the tag (expired or re-tagged) are stale
        item_tags: Dict[str, Set[str]] = {}
        for key, listed in listed_under.items():
            current = {self._decode(tag) for tag in self._r.smembers(self._item_tags_key(key))}
            if current & listed:
                item_tags[key] = current
        keys = sorted(item_tags)

        pipe = self._r.pipeline(transaction=True)
        for key in keys:
            pipe.delete(self._item_key(key))
        for key in keys:
            pipe.delete(self._item_tags_key(key))
            for tag in item_tags[key]:
                pipe.srem(self._tag_key(tag), key)
        pipe.delete(*[self._tag_key(tag) for tag in tag_list])
        results = pipe.execute()

        removed = sum(1 for count in results[:len(keys)] if count)

        self._record("clear")
        self.logger.debug("Cleared cache tags", tags=len(tag_list), removed=removed)
        return removed

    def clear_all(self) -> None:
        keys = list(self._r.scan_iter(match=f"{self._p}:*"))
        if keys:
            self._r.delete(*keys)

        self._record("clear")
        self.logger.info("Cache cleared", prefix=self._p, keys_count=len(keys))

    def _record(self, result: str) -> None:
        self.metrics.increment_counter(
            "datastore_cache_operations_total", backend=self.backend_name, result=result
        )
