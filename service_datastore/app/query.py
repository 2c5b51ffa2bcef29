"""
Query string helpers for data store requests.
"""

from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote

_SEPARATOR_ESCAPES = str.maketrans({"=": "%3D", "&": "%26"})


def append_query_values(current_query: str, additions: Mapping[str, Optional[str]]) -> str:
    """Merge ``additions`` into ``current_query``.

    Existing pairs whose decoded key matches a key in ``additions`` are dropped
    and the additions appended in mapping order. A ``None`` value produces a
    bare key. Only the separators ``=`` and ``&`` are escaped here; any other
    character is left for the URL layer to percent-encode.
    """
    if not current_query:
        result = []
    else:
        replaced = {unquote(key) for key in additions}
        result = [
            part for part in current_query.split("&")
            if part and unquote(part.split("=", 1)[0]) not in replaced
        ]

    for key, value in additions.items():
        key = key.translate(_SEPARATOR_ESCAPES)
        if value is not None:
            result.append(f"{key}={value.translate(_SEPARATOR_ESCAPES)}")
        else:
            result.append(key)

    return "&".join(result)


def to_query_params(options: Optional[Mapping[str, Any]]) -> Dict[str, Optional[str]]:
    """Convert request options into query parameters."""
    query: Dict[str, Optional[str]] = {}
    for key, value in (options or {}).items():
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif value is None:
            query[key] = None
        else:
            query[key] = str(value)
    return query
