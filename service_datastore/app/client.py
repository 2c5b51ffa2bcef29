"""
Data store bootstrap from configuration.
"""

from typing import Optional

from shared.config import DataStoreConfig, get_config
from shared.errors import ArgumentError
from shared.logging import configure_logging, get_logger
from shared.retry import RetryConfig

from .adapters.transport import HttpxTransport, Transport
from .api_key import ApiKey
from .caching.backends import InMemoryTaggedCache, NullTaggedCache, RedisTaggedCache, TaggedCache
from .datastore import DefaultDataStore

logger = get_logger("datastore.client")


def build_cache(config: DataStoreConfig) -> TaggedCache:
    """Create the cache backend selected by ``cache_backend``."""
    ttl = config.cache_ttl_seconds or None
    if config.cache_backend == "redis":
        return RedisTaggedCache.from_redis_url(config.redis_url, prefix=config.cache_prefix, default_ttl=ttl)
    if config.cache_backend == "none":
        return NullTaggedCache()
    return InMemoryTaggedCache(namespace=config.cache_prefix, default_ttl=ttl)


def build_transport(config: DataStoreConfig, api_key: Optional[ApiKey]) -> HttpxTransport:
    return HttpxTransport(
        auth=api_key.basic_auth() if api_key else None,
        timeout=config.http_timeout_seconds,
        user_agent=config.user_agent,
        retry_config=RetryConfig(max_attempts=config.http_max_attempts, base_delay=0.5, max_delay=5.0),
    )


def build_data_store(
    config: Optional[DataStoreConfig] = None,
    *,
    cache: Optional[TaggedCache] = None,
    transport: Optional[Transport] = None,
    configure_logs: bool = False,
) -> DefaultDataStore:
    """Wire a :class:`DefaultDataStore` from configuration.

    Pass ``configure_logs=True`` from an application entry point to install
    the JSON structlog pipeline at ``config.log_level``.
    """
    config = config or get_config()
    if configure_logs:
        configure_logging("datastore", config.log_level)

    api_key = None
    if config.api_key_id or config.api_key_secret:
        if not (config.api_key_id and config.api_key_secret):
            raise ArgumentError("Both api_key_id and api_key_secret must be configured.")
        api_key = ApiKey(config.api_key_id, config.api_key_secret)

    data_store = DefaultDataStore(
        api_key,
        cache if cache is not None else build_cache(config),
        transport if transport is not None else build_transport(config, api_key),
        base_url=config.base_url,
        cache_ttl=config.cache_ttl_seconds or None,
    )
    logger.info(
        "Data store configured",
        base_url=data_store.base_url,
        cache_backend=config.cache_backend,
        authenticated=api_key is not None,
    )
    return data_store
