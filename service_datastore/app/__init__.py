"""
Resource data store package.

Mediates between in-memory resources and the remote REST API while keeping
a tagged response cache consistent across create, save and delete.

Structure:
- app.datastore: DefaultDataStore, the cache-aware CRUD orchestrator.
- app.adapters: HTTP transport and request executor.
- app.caching: Cache keys, tag extraction, cacheability and backends.
- app.resources: Resource model, type registry and type resolver.
- app.serialization: Resource to wire-format conversion.
- app.query: Query string merging.
- app.client: Bootstrap from configuration.
"""

__version__ = "0.1.0"

from .api_key import ApiKey
from .client import build_data_store
from .datastore import DefaultDataStore

__all__ = ["ApiKey", "DefaultDataStore", "build_data_store"]
