"""
Resource to wire-format serialization.

Resource-typed fields are attached by reference: a nested plain object is
sent as ``{"href": ...}`` only. Custom data, and resources passed as new
nested objects, are embedded by value.
"""

import json
from typing import Any, Dict

from shared.errors import ArgumentError

from .resources.base import CUSTOM_DATA_PROP_NAME, HREF_PROP_NAME, CustomData, Resource

DEFAULT_MODEL_PROP_NAME = "defaultModel"


def to_wire(resource: Resource, inside_custom_data: bool = False) -> Dict[str, Any]:
    """Convert ``resource`` into a plain dict ready for JSON encoding."""
    if isinstance(resource, CustomData):
        inside_custom_data = True

    properties: Dict[str, Any] = {}

    for name in resource.get_property_names():
        value = resource.get_property(name)

        if isinstance(value, CustomData):
            value = to_wire(value, True)
        elif (
            isinstance(value, dict)
            and not inside_custom_data
            and name not in (CUSTOM_DATA_PROP_NAME, DEFAULT_MODEL_PROP_NAME)
        ):
            value = to_simple_reference(name, value)
        elif isinstance(value, Resource):
            value = to_wire(value)

        properties[name] = value

    return properties


def to_simple_reference(property_name: str, properties: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a nested object to its href."""
    href = properties.get(HREF_PROP_NAME)
    if not href:
        raise ArgumentError(
            f"Nested resource '{property_name}' must have an 'href' property.",
            details={"property": property_name},
        )
    return {HREF_PROP_NAME: href}


def to_json(resource: Resource) -> str:
    return json.dumps(to_wire(resource), separators=(",", ":"))
