"""
Integration tests for the data store flow over real HTTP and Redis clients.

The remote API is an in-process httpx.MockTransport; the cache is a
RedisTaggedCache on fakeredis.
"""

import json
from urllib.parse import parse_qsl

import fakeredis
import httpx
import pytest
from prometheus_client import CollectorRegistry

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_datastore.app import build_data_store
from service_datastore.app.adapters.transport import HttpxTransport
from service_datastore.app.api_key import ApiKey
from service_datastore.app.caching.backends import RedisTaggedCache
from service_datastore.app.resources import Account, ProviderAccountResult
from shared.config import DataStoreConfig
from shared.errors import ResourceError
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig

BASE_URL = "https://api.example.com/v1"
APPLICATION_HREF = f"{BASE_URL}/applications/app-1"
DIRECTORY_HREF = f"{BASE_URL}/directories/dir-1"


class FakeApi:
    """Tiny resource server: POST to a collection creates, POST to an href updates."""

    def __init__(self):
        self.resources = {
            DIRECTORY_HREF: {"href": DIRECTORY_HREF, "name": "Users"},
            APPLICATION_HREF: {"href": APPLICATION_HREF, "name": "Portal"},
        }
        self.requests = []
        self._next_id = 1

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        href = str(request.url).split("?", 1)[0]

        if request.method == "GET":
            if href not in self.resources:
                return httpx.Response(404, json={"status": 404, "code": 404, "message": "Not found"})
            return httpx.Response(200, json=self.resources[href])

        if request.method == "DELETE":
            self.resources.pop(href, None)
            return httpx.Response(204)

        if href.endswith("/oauth/token"):
            form = dict(parse_qsl(request.content.decode()))
            return httpx.Response(200, json={"access_token": f"token-for-{form['username']}", "token_type": "Bearer"})

        body = json.loads(request.content)
        if href.endswith("/accounts"):
            account_href = f"{BASE_URL}/accounts/acc-{self._next_id}"
            self._next_id += 1
            self.resources[account_href] = dict(body, href=account_href)
            return httpx.Response(201, json=self.resources[account_href])

        self.resources[href].update(body)
        return httpx.Response(200, json=self.resources[href])


class TestDataStoreFlow:
    """End-to-end flows through HttpxTransport and RedisTaggedCache."""

    @pytest.fixture
    def api(self):
        return FakeApi()

    @pytest.fixture
    def redis_client(self):
        return fakeredis.FakeRedis()

    @pytest.fixture
    def data_store(self, api, redis_client):
        metrics = MetricsCollector(CollectorRegistry())
        config = DataStoreConfig(
            api_key_id="key-id",
            api_key_secret="key-secret",
            base_url=BASE_URL,
            cache_backend="redis",
        )
        transport = HttpxTransport(
            httpx.Client(transport=httpx.MockTransport(api)),
            auth=ApiKey("key-id", "key-secret").basic_auth(),
            retry_config=RetryConfig(max_attempts=1, base_delay=0, jitter=False),
        )
        cache = RedisTaggedCache(redis_client, prefix="it", default_ttl=300, metrics=metrics)
        return build_data_store(config, cache=cache, transport=transport)

    def test_create_read_update_delete(self, data_store, api):
        """Test the full lifecycle of an account."""
        account = data_store.instantiate(Account, {
            "email": "jdoe@example.com",
            "givenName": "Jane",
            "directory": {"href": DIRECTORY_HREF, "name": "Users"},
        })

        data_store.create(f"{APPLICATION_HREF}/accounts", account, Account)
        assert account.href == f"{BASE_URL}/accounts/acc-1"
        assert api.resources[account.href]["directory"] == {"href": DIRECTORY_HREF}

        fetched = data_store.get_resource(account.href, Account)
        assert fetched.given_name == "Jane"
        assert [r.method for r in api.requests] == ["POST"]

        fetched.given_name = "Janet"
        fetched.save()
        assert data_store.get_resource(account.href, Account).given_name == "Janet"
        assert [r.method for r in api.requests] == ["POST", "POST"]

        fetched.delete()
        with pytest.raises(ResourceError) as exc_info:
            data_store.get_resource(account.href, Account)
        assert exc_info.value.status == 404

    def test_requests_are_authenticated(self, data_store, api):
        data_store.get_resource(APPLICATION_HREF, "Application")

        assert api.requests[0].headers["Authorization"].startswith("Basic ")
        assert api.requests[0].headers["Accept"] == "application/json"

    def test_directory_delete_clears_redis_cache(self, data_store, api, redis_client):
        data_store.get_resource(APPLICATION_HREF, "Application")
        directory = data_store.get_resource(DIRECTORY_HREF, "Directory")
        assert list(redis_client.scan_iter(match="it:item:*"))

        directory.delete()

        assert list(redis_client.scan_iter(match="it:*")) == []
        data_store.get_resource(APPLICATION_HREF, "Application")
        assert [r.method for r in api.requests] == ["GET", "GET", "DELETE", "GET"]

    def test_provider_account_result(self, data_store):
        result = data_store.create(
            f"{APPLICATION_HREF}/accounts",
            data_store.instantiate("Resource", {"email": "social@example.com"}),
            ProviderAccountResult,
        )

        assert result.is_new_account is True
        assert result.account.email == "social@example.com"

    def test_oauth_token_exchange(self, data_store, api):
        token = data_store.create(
            f"{APPLICATION_HREF}/oauth/token",
            data_store.instantiate("Resource", {"grant_type": "password", "username": "jdoe", "password": "pw"}),
            "Resource",
        )

        request = api.requests[0]
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content == b"grant_type=password&password=pw&username=jdoe"
        assert token.get_property("access_token") == "token-for-jdoe"
