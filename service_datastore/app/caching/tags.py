"""
Cache tag extraction from response bodies.
"""

from typing import Any, Iterable, List, Set

from .keys import normalize_href_as_cache_tag

HREF_PROP_NAME = "href"


def extract_cache_tags(response: Any) -> Set[str]:
    """Collect every href referenced anywhere in ``response``.

    Includes the top-level href and the href of every nested object, at any
    depth, inside dicts and lists.
    """
    tags: Set[str] = set()
    stack: List[Any] = [response]

    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            href = node.get(HREF_PROP_NAME)
            if isinstance(href, str) and href:
                tags.add(href)
            stack.extend(node.values())
        elif isinstance(node, list):
            stack.extend(node)

    return tags


def normalize_cache_tags(hrefs: Iterable[str]) -> List[str]:
    """Normalize raw hrefs into sorted cache tags."""
    return sorted({normalize_href_as_cache_tag(href) for href in hrefs})
