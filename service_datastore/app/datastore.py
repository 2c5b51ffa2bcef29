"""
Cache-aware resource data store.

Reads go through the tagged cache; writes serialize the resource, POST it,
invalidate every cache entry that referenced the touched hrefs and
re-populate the cache with the fresh response.
"""

import copy
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

from shared.errors import ArgumentError
from shared.logging import get_logger
from shared.metrics import MetricsCollector, get_metrics_collector

from .adapters.request_executor import BodyEncodingPolicy, RequestExecutor
from .adapters.transport import HttpxTransport, Transport
from .api_key import ApiKey
from .caching.backends import TaggedCache
from .caching.keys import create_cache_key, normalize_href_as_cache_tag
from .caching.policy import HTTP_STATUS_PROP_NAME, response_is_cacheable
from .caching.tags import extract_cache_tags, normalize_cache_tags
from .query import to_query_params
from .resources.base import HREF_PROP_NAME, Resource
from .resources.registry import ResourceRegistry, ResourceType, default_registry, type_name_of
from .resources.resolver import ClassNameResolver, default_resolver
from .resources.types import Directory, ProviderAccountResult
from .serialization import to_json


class DefaultDataStore:
    """Data store mediating between resources and the remote REST API."""

    DEFAULT_SERVER_HOST = "api.stormpath.com"
    DEFAULT_API_VERSION = "1"

    def __init__(
        self,
        api_key: Optional[ApiKey],
        cache: TaggedCache,
        transport: Optional[Transport] = None,
        *,
        base_url: Optional[str] = None,
        registry: Optional[ResourceRegistry] = None,
        resolver: Optional[ClassNameResolver] = None,
        encoding_policy: Optional[BodyEncodingPolicy] = None,
        metrics: Optional[MetricsCollector] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.api_key = api_key
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.logger = get_logger("datastore.store")
        self.metrics = metrics or get_metrics_collector()

        if transport is None:
            transport = HttpxTransport(auth=api_key.basic_auth() if api_key else None)
        self.transport = transport
        self.executor = RequestExecutor(transport, encoding_policy, metrics=self.metrics)

        self.registry = registry or default_registry()
        self.resolver = resolver or default_resolver()

        if not base_url:
            base_url = f"https://{self.DEFAULT_SERVER_HOST}/v{self.DEFAULT_API_VERSION}"
        self.base_url = base_url.rstrip("/")

    def instantiate(
        self,
        resource_type: ResourceType,
        properties: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Resource:
        """Build a new, unsaved resource bound to this store."""
        return self.registry.instantiate(resource_type, properties, options, self)

    def get_resource(
        self,
        href: str,
        resource_type: ResourceType,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Resource:
        """Look up the resource at ``href``, from cache when possible."""
        href = self._qualify_if_needed(href)
        query = to_query_params(options)
        cache_key = create_cache_key(href, options)

        hit, data = self.cache.get(cache_key)
        if hit:
            self.logger.debug("Cache hit", href=href)
        else:
            self.logger.debug("Cache miss", href=href)
            data = self._strip_http_status(self.executor.execute("GET", href, "", query))

            if response_is_cacheable(data):
                self._write_cache(cache_key, data)

        concrete_type = self.resolver.resolve(resource_type, data, options)
        return self.registry.instantiate(concrete_type, data, query, self)

    def create(
        self,
        parent_href: str,
        resource: Resource,
        return_type: ResourceType,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Resource:
        """POST ``resource`` to ``parent_href`` and return the created resource.

        When ``resource`` is an instance of the return type, it is updated in
        place with what the server returned.
        """
        query = to_query_params(options)
        returned, response = self._save_resource(parent_href, resource, return_type, query)

        if response is not None and isinstance(resource, self.registry.class_for(return_type)):
            resource.set_properties(copy.deepcopy(response))

        return returned

    def save(self, resource: Resource, return_type: Optional[ResourceType] = None) -> Resource:
        """POST a persisted resource back to its href and refresh it in place."""
        href = resource.href
        if not href:
            raise ArgumentError(
                "save may only be called on objects that have already been persisted "
                "(i.e. they have an existing href)."
            )

        returned, response = self._save_resource(href, resource, return_type or type(resource))

        if response is not None:
            resource.set_properties(copy.deepcopy(response))

        return returned

    def delete(self, resource: Resource) -> Any:
        href = self._qualify_if_needed(resource.href)
        result = self.executor.execute("DELETE", href)
        self._remove_resource_from_cache(resource, href)
        self.logger.debug("Resource deleted", href=href, resource_type=type(resource).__name__)
        return result

    def remove_custom_data_item(self, resource: Resource, key: str) -> Any:
        """Delete one custom data entry of ``resource``."""
        if not resource.href:
            raise ArgumentError("Cannot remove custom data from a resource without an href.")

        href = self._qualify_if_needed(resource.href)
        result = self.executor.execute("DELETE", f"{href.rstrip('/')}/{quote(key, safe='')}")
        self._remove_resource_from_cache(resource, href)
        self.logger.debug("Custom data item removed", href=href, key=key)
        return result

    def needs_to_be_fully_qualified(self, href: str) -> bool:
        return not href.lower().startswith("http")

    def qualify(self, href: str) -> str:
        slash = "" if href.startswith("/") else "/"
        return f"{self.base_url}{slash}{href}"

    def _qualify_if_needed(self, href: str) -> str:
        if href and self.needs_to_be_fully_qualified(href):
            return self.qualify(href)
        return href

    def _save_resource(
        self,
        href: str,
        resource: Resource,
        return_type: ResourceType,
        query: Optional[Dict[str, Optional[str]]] = None,
    ) -> Tuple[Resource, Optional[Dict[str, Any]]]:
        href = self._qualify_if_needed(href)
        query = query or {}

        response = self.executor.execute("POST", href, to_json(resource), query)
        status = response.pop(HTTP_STATUS_PROP_NAME, None) if isinstance(response, dict) else None

        # invalidate before re-populating so no stale entry survives the write
        self._remove_href_from_cache(href)
        returned_href = response.get(HREF_PROP_NAME) if isinstance(response, dict) else None
        returned_href = self._qualify_if_needed(returned_href or "")
        if returned_href and returned_href != href:
            self._remove_href_from_cache(returned_href)

        if response_is_cacheable(response):
            self._write_cache(create_cache_key(returned_href, query), response)

        # the provider reports whether the account is new only through the status
        if (
            isinstance(response, dict)
            and type_name_of(return_type) == ProviderAccountResult.TYPE_NAME
            and status in (200, 201)
        ):
            response[ProviderAccountResult.NEW_ACCOUNT_PROP_NAME] = status == 201

        self.logger.debug("Resource saved", href=href, returned_href=returned_href, status_code=status)
        returned = self.registry.instantiate(return_type, copy.deepcopy(response), query, self)
        return returned, response

    def _strip_http_status(self, data: Any) -> Any:
        if isinstance(data, dict):
            data.pop(HTTP_STATUS_PROP_NAME, None)
        return data

    def _write_cache(self, cache_key: str, data: Dict[str, Any]) -> None:
        tags = normalize_cache_tags(extract_cache_tags(data))
        self.cache.set(cache_key, data, tags, ttl=self.cache_ttl)

    def _remove_resource_from_cache(self, resource: Resource, href: str) -> None:
        # directories fan out into too many dependents to invalidate one by one
        if isinstance(resource, Directory):
            self.cache.clear_all()
            self.metrics.increment_counter("datastore_cache_invalidations_total", kind="all")
            self.logger.info("Cache cleared after directory change", href=href)
        else:
            self._remove_href_from_cache(href)

    def _remove_href_from_cache(self, href: str) -> None:
        self.cache.delete(create_cache_key(href))
        self.metrics.increment_counter("datastore_cache_invalidations_total", kind="href")

        removed = self.cache.clear_by_tags([normalize_href_as_cache_tag(href)])
        self.metrics.increment_counter("datastore_cache_invalidations_total", kind="tag")
        self.logger.debug("Invalidated cached href", href=href, tagged_entries=removed)
