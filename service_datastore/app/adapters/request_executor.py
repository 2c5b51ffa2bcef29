"""
Request execution against the remote API.
"""

import json
import time
from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx

from shared.errors import ArgumentError, Error, ResourceError
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector

from ..caching.policy import HTTP_STATUS_PROP_NAME
from ..query import append_query_values, to_query_params
from .transport import Transport

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class BodyEncodingPolicy:
    """Decide how a request body is encoded for a given endpoint.

    Bodies are JSON except for endpoints whose URL path ends with one of
    ``form_encoded_paths``; those get the JSON keys sorted and re-encoded as
    form data. Only the path is matched, never the host or query.
    """

    def __init__(self, form_encoded_paths: Iterable[str] = ("/oauth/token",)):
        self.form_encoded_paths = tuple("/" + path.strip("/") for path in form_encoded_paths)

    def uses_form_encoding(self, href: str) -> bool:
        path = "/" + urlsplit(href).path.strip("/")
        return any(path.endswith(suffix) for suffix in self.form_encoded_paths)

    def encode(self, href: str, body: str) -> Tuple[str, str]:
        """Return ``(content_type, body)`` for ``href``.

        Form bodies flatten nested objects and lists in bracket notation
        (``a[b]=1``, ``a[0]=x``); ``None`` values are left out.
        """
        if not self.uses_form_encoding(href):
            return JSON_CONTENT_TYPE, body

        data = json.loads(body)
        pairs: List[Tuple[str, str]] = []
        for key in sorted(data):
            _flatten_form_value(key, data[key], pairs)
        return FORM_CONTENT_TYPE, urlencode(pairs)


def _flatten_form_value(name: str, value: Any, pairs: List[Tuple[str, str]]) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten_form_value(f"{name}[{key}]", item, pairs)
    elif isinstance(value, list):
        for index, item in enumerate(value):
            _flatten_form_value(f"{name}[{index}]", item, pairs)
    elif value is not None:
        pairs.append((name, to_query_params({name: value})[name]))


class RequestExecutor:
    """Build, send and decode a single request."""

    def __init__(
        self,
        transport: Transport,
        encoding_policy: Optional[BodyEncodingPolicy] = None,
        *,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.transport = transport
        self.encoding_policy = encoding_policy or BodyEncodingPolicy()
        self.metrics = metrics or get_metrics_collector()
        self.logger = get_logger("datastore.executor")

    def execute(
        self,
        method: str,
        href: str,
        body: str = "",
        query: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Any:
        """Execute a request and return the decoded body.

        Dict results carry the HTTP status under ``httpStatus``. A status
        outside 200-299 raises :class:`ResourceError`.
        """
        if not href:
            raise ArgumentError("Cannot execute request against empty URL")

        headers = {"Accept": JSON_CONTENT_TYPE}
        if body:
            headers["Content-Type"], body = self.encoding_policy.encode(href, body)

        url = self.build_url(href, query or {})

        start = time.perf_counter()
        response = self.transport.send(method, url, headers, body)
        self.metrics.record_request(method, response.status, time.perf_counter() - start)

        result = self._decode(response.body)
        if isinstance(result, dict):
            result[HTTP_STATUS_PROP_NAME] = response.status

        if not 200 <= response.status <= 299:
            payload = result if isinstance(result, dict) else {"status": response.status}
            error = Error(payload, status=response.status)
            self.logger.warning(
                "Remote API request failed",
                method=method,
                url=url,
                status_code=response.status,
                error_code=error.code,
                error_message=error.message,
            )
            raise ResourceError(error)

        self.logger.debug("Remote API request completed", method=method, url=url, status_code=response.status)
        return result

    @staticmethod
    def build_url(href: str, query: Mapping[str, Optional[str]]) -> str:
        """Merge ``query`` into ``href`` and percent-encode the result."""
        parts = urlsplit(href)
        merged = append_query_values(parts.query, query)
        return str(httpx.URL(urlunsplit(parts._replace(query=merged))))

    def _decode(self, body: str) -> Any:
        if not body or not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError:
            self.logger.debug("Response body is not JSON", length=len(body))
            return None
