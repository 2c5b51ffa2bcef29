"""
Resource base types.

A resource is an ordered, mutable property bag mirroring a remote entity.
The data store only talks to resources through the accessors defined here.
"""

from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..datastore import DefaultDataStore

HREF_PROP_NAME = "href"
CUSTOM_DATA_PROP_NAME = "customData"


class Property:
    """Declared accessor for a named wire property."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance: Optional["Resource"], owner: type) -> Any:
        if instance is None:
            return self
        return instance.get_property(self.name)

    def __set__(self, instance: "Resource", value: Any) -> None:
        instance.set_property(self.name, value)


class Resource:
    """Generic remote resource."""

    TYPE_NAME = "Resource"

    def __init__(
        self,
        properties: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
        data_store: Optional["DefaultDataStore"] = None,
    ):
        self.data_store = data_store
        self.options: Dict[str, Any] = dict(options or {})
        self._properties: Dict[str, Any] = {}
        self.set_properties(properties or {})

    @property
    def href(self) -> str:
        return self._properties.get(HREF_PROP_NAME) or ""

    @property
    def is_persisted(self) -> bool:
        return bool(self.href)

    def get_property_names(self) -> List[str]:
        return list(self._properties)

    def get_property(self, name: str, default: Any = None) -> Any:
        return self._properties.get(name, default)

    def set_property(self, name: str, value: Any) -> None:
        self._properties[name] = self._wrap(name, value)

    def set_properties(self, properties: Mapping[str, Any]) -> None:
        """Replace every property with ``properties``."""
        self._properties = {name: self._wrap(name, value) for name, value in properties.items()}

    def get_properties(self) -> Dict[str, Any]:
        return dict(self._properties)

    def _wrap(self, name: str, value: Any) -> Any:
        if name == CUSTOM_DATA_PROP_NAME and isinstance(value, dict):
            return CustomData(value, data_store=self.data_store)
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return type(self) is type(other) and self._properties == other._properties

    def __repr__(self) -> str:
        return f"{type(self).__name__}(href={self.href!r})"


class CustomData(Resource):
    """Free-form key/value data attached to a resource; always serialized inline."""

    TYPE_NAME = "CustomData"

    def __getitem__(self, key: str) -> Any:
        return self._properties[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set_property(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self._properties

    def remove(self, key: str) -> None:
        """Delete ``key`` remotely and locally."""
        if self.data_store is not None and self.is_persisted:
            self.data_store.remove_custom_data_item(self, key)
        self._properties.pop(key, None)

    def _wrap(self, name: str, value: Any) -> Any:
        return value
