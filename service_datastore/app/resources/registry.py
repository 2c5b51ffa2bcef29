"""
Typed resource registry.

Maps a resource type name to its class and builds instances from wire data.
"""

import threading
from typing import Any, Dict, Iterable, Mapping, Optional, Type, Union

from shared.errors import ArgumentError
from shared.logging import get_logger

from .base import Resource

ResourceType = Union[str, Type[Resource]]


def type_name_of(resource_type: ResourceType) -> str:
    """Type name for a class or a name."""
    if isinstance(resource_type, type) and issubclass(resource_type, Resource):
        return resource_type.TYPE_NAME
    if isinstance(resource_type, str) and resource_type:
        return resource_type
    raise ArgumentError(f"Invalid resource type: {resource_type!r}")


class ResourceRegistry:
    """Registry of resource classes keyed by ``TYPE_NAME``."""

    def __init__(self, resource_types: Iterable[Type[Resource]] = ()):
        self.logger = get_logger("datastore.registry")
        self._types: Dict[str, Type[Resource]] = {}
        self._lock = threading.Lock()
        for resource_cls in resource_types:
            self.register(resource_cls)

    def register(self, resource_cls: Type[Resource]) -> Type[Resource]:
        """Register a resource class; usable as a class decorator."""
        if not (isinstance(resource_cls, type) and issubclass(resource_cls, Resource)):
            raise ArgumentError(f"{resource_cls!r} is not a Resource subclass")

        with self._lock:
            self._types[resource_cls.TYPE_NAME] = resource_cls
        return resource_cls

    def __contains__(self, resource_type: ResourceType) -> bool:
        return type_name_of(resource_type) in self._types

    def class_for(self, resource_type: ResourceType) -> Type[Resource]:
        name = type_name_of(resource_type)
        try:
            return self._types[name]
        except KeyError:
            raise ArgumentError(f"Unknown resource type '{name}'") from None

    def instantiate(
        self,
        resource_type: ResourceType,
        data: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
        data_store: Any = None,
    ) -> Resource:
        """Create a resource of ``resource_type`` holding ``data``."""
        resource_cls = self.class_for(resource_type)
        return resource_cls(data, query, data_store)


def default_registry() -> ResourceRegistry:
    """Registry pre-populated with the built-in resource types."""
    from .types import DEFAULT_RESOURCE_TYPES

    return ResourceRegistry(DEFAULT_RESOURCE_TYPES)
