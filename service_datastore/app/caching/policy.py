"""
Cacheability rules for remote API responses.
"""

from typing import Any

HTTP_STATUS_PROP_NAME = "httpStatus"
COLLECTION_ITEMS_PROP_NAME = "items"


def is_collection_resource(response: Any) -> bool:
    """Collection pages carry their members under ``items``."""
    return isinstance(response, dict) and isinstance(response.get(COLLECTION_ITEMS_PROP_NAME), list)


def response_is_cacheable(response: Any) -> bool:
    """Only single resources with an href and a success status are cached."""
    if not isinstance(response, dict):
        return False

    href = response.get("href")
    if not isinstance(href, str) or not href:
        return False

    if is_collection_resource(response):
        return False

    status = response.get(HTTP_STATUS_PROP_NAME)
    if status is not None and not 200 <= int(status) <= 299:
        return False

    return True
