"""
Shared fixtures for data store tests.
"""

import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from prometheus_client import CollectorRegistry

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_datastore.app.adapters.transport import TransportResponse
from service_datastore.app.api_key import ApiKey
from service_datastore.app.caching.backends import InMemoryTaggedCache
from service_datastore.app.datastore import DefaultDataStore
from shared.metrics import MetricsCollector

BASE_URL = "https://api.example.com/v1"
ACCOUNT_HREF = f"{BASE_URL}/accounts/acc-1"
DIRECTORY_HREF = f"{BASE_URL}/directories/dir-1"
APPLICATION_HREF = f"{BASE_URL}/applications/app-1"


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: str

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass
class FakeTransport:
    """Scripted transport: replays queued responses and records requests."""

    responses: deque = field(default_factory=deque)
    requests: List[RecordedRequest] = field(default_factory=list)

    def queue(self, status: int, body: Optional[Any] = None, headers: Optional[Dict[str, str]] = None):
        if body is None:
            text = ""
        elif isinstance(body, str):
            text = body
        else:
            text = json.dumps(body)
        self.responses.append(TransportResponse(status=status, headers=headers or {}, body=text))

    def send(self, method, url, headers, body):
        self.requests.append(RecordedRequest(method, url, dict(headers), body))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        return self.responses.popleft()


@pytest.fixture
def metrics():
    """Metrics collector on an isolated registry."""
    return MetricsCollector(CollectorRegistry())


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def cache(metrics):
    return InMemoryTaggedCache(metrics=metrics)


@pytest.fixture
def data_store(cache, transport, metrics):
    """Data store wired to the in-memory cache and the fake transport."""
    return DefaultDataStore(
        ApiKey("key-id", "key-secret"),
        cache,
        transport,
        base_url=BASE_URL,
        metrics=metrics,
    )
