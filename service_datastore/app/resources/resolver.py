"""
Concrete type resolution for polymorphic responses.
"""

from typing import Any, Dict, Mapping, Optional, Protocol

from .registry import ResourceType, type_name_of


class TypeResolverDelegate(Protocol):
    def resolve(self, type_name: str, data: Any, options: Mapping[str, Any]) -> str:
        ...


class ProviderResolver:
    """Pick the provider subtype from the ``providerId`` in the response."""

    PROVIDER_ID_PROP_NAME = "providerId"
    PROVIDER_TYPES = {
        "google": "GoogleProvider",
        "facebook": "FacebookProvider",
        "github": "GithubProvider",
        "linkedin": "LinkedInProvider",
        "stormpath": "Provider",
    }

    def resolve(self, type_name: str, data: Any, options: Mapping[str, Any]) -> str:
        if not isinstance(data, dict):
            return type_name
        provider_id = str(data.get(self.PROVIDER_ID_PROP_NAME) or "").lower()
        return self.PROVIDER_TYPES.get(provider_id, type_name)


class ClassNameResolver:
    """Resolve a declared type to the concrete type the server returned.

    Delegates are keyed by declared type name. Types without a delegate
    resolve to themselves.
    """

    def __init__(self, delegates: Optional[Mapping[str, TypeResolverDelegate]] = None):
        self._delegates: Dict[str, TypeResolverDelegate] = dict(delegates or {})

    def register(self, resource_type: ResourceType, delegate: TypeResolverDelegate) -> None:
        self._delegates[type_name_of(resource_type)] = delegate

    def resolve(self, resource_type: ResourceType, data: Any, options: Optional[Mapping[str, Any]] = None) -> str:
        type_name = type_name_of(resource_type)
        delegate = self._delegates.get(type_name)
        if delegate is None:
            return type_name
        return delegate.resolve(type_name, data, options or {})


def default_resolver() -> ClassNameResolver:
    return ClassNameResolver({"Provider": ProviderResolver()})
