"""
Data store caching package.

Tagged response cache primitives: key normalization, tag extraction, the
cacheability rule and the backends. Entries are invalidated explicitly, by
key or by tag, whenever a write touches a cached href.
"""

from .backends import InMemoryTaggedCache, NullTaggedCache, RedisTaggedCache, TaggedCache
from .keys import create_cache_key, normalize_href_as_cache_tag
from .policy import response_is_cacheable
from .tags import extract_cache_tags, normalize_cache_tags

__all__ = [
    "TaggedCache",
    "InMemoryTaggedCache",
    "NullTaggedCache",
    "RedisTaggedCache",
    "create_cache_key",
    "normalize_href_as_cache_tag",
    "response_is_cacheable",
    "extract_cache_tags",
    "normalize_cache_tags",
]
