"""
HTTP transport for the data store.

The executor hands fully built requests to a ``Transport`` and gets back the
raw status, headers and body. Authentication, redirects and connection-level
retries live here, never in the executor.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

import httpx

from shared.logging import get_logger
from shared.retry import RetryConfig, retry_on_exception

DEFAULT_USER_AGENT = "datastore-client/0.1.0"
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


@dataclass
class TransportResponse:
    """Raw response handed back to the request executor."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


class Transport(Protocol):
    def send(self, method: str, url: str, headers: Mapping[str, str], body: str) -> TransportResponse:
        ...


class HttpxTransport:
    """Transport backed by a synchronous ``httpx.Client``."""

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        auth: Optional[httpx.Auth] = None,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )
        self.auth = auth
        self.user_agent = user_agent
        self.logger = get_logger("datastore.transport")

        self.retry_config = retry_config or RetryConfig(
            max_attempts=3,
            base_delay=0.5,
            max_delay=5.0,
            exponential_base=2.0,
            jitter=True
        )
        self._send_idempotent = retry_on_exception(
            (httpx.TransportError,), config=self.retry_config
        )(self._send_once)
        # the request never reached the server, so a POST may be re-sent
        self._send_unsent_only = retry_on_exception(
            (httpx.ConnectError, httpx.ConnectTimeout), config=self.retry_config
        )(self._send_once)

    def send(self, method: str, url: str, headers: Mapping[str, str], body: str) -> TransportResponse:
        """Send one request; statuses are never retried.

        Idempotent methods are retried on any transport failure. Other
        methods are retried only when the connection could not be opened.
        """
        request_headers = dict(headers)
        request_headers.setdefault("User-Agent", self.user_agent)
        if method.upper() in IDEMPOTENT_METHODS:
            return self._send_idempotent(method, url, request_headers, body)
        return self._send_unsent_only(method, url, request_headers, body)

    def _send_once(self, method: str, url: str, headers: Dict[str, str], body: str) -> TransportResponse:
        response = self.client.request(
            method,
            url,
            headers=headers,
            content=body.encode("utf-8") if body else None,
            auth=self.auth if self.auth is not None else httpx.USE_CLIENT_DEFAULT,
        )
        self.logger.debug("HTTP exchange", method=method, url=url, status_code=response.status_code)
        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.text,
        )

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
