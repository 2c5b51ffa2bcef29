"""
Cache key normalization for data store entries and tags.
"""

import hashlib
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..query import to_query_params

KEY_PREFIX = "datastore"


def canonical_href(href: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """Return ``href`` with its query and ``options`` merged and sorted."""
    parts = urlsplit(href)
    base = urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, "", ""))

    overrides = {
        key: "" if value is None else value
        for key, value in to_query_params(options).items()
    }
    pairs = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in overrides
    ]
    pairs.extend(overrides.items())

    if not pairs:
        return base
    return f"{base}?{urlencode(sorted(pairs))}"


def create_cache_key(href: str, options: Optional[Mapping[str, Any]] = None) -> str:
    """Generate cache key for an href plus request options."""
    digest = hashlib.md5(canonical_href(href, options).encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}:{digest}"


def normalize_href_as_cache_tag(href: str) -> str:
    """Cache tag for an href; identical to the href's own cache key."""
    return create_cache_key(href)
