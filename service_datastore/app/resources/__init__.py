"""
Resource model package.

- base: Resource property bag, CustomData and declared properties.
- types: Built-in resource types (Account, Directory, ...).
- registry: Type name to class mapping used to build instances.
- resolver: Concrete type selection for polymorphic responses.
"""

from .base import CUSTOM_DATA_PROP_NAME, HREF_PROP_NAME, CustomData, Property, Resource
from .registry import ResourceRegistry, default_registry, type_name_of
from .resolver import ClassNameResolver, ProviderResolver, default_resolver
from .types import (
    Account,
    Application,
    Directory,
    FacebookProvider,
    GithubProvider,
    GoogleProvider,
    Group,
    InstanceResource,
    LinkedInProvider,
    Provider,
    ProviderAccountResult,
    Tenant,
)

__all__ = [
    "HREF_PROP_NAME",
    "CUSTOM_DATA_PROP_NAME",
    "Property",
    "Resource",
    "CustomData",
    "InstanceResource",
    "Tenant",
    "Directory",
    "Application",
    "Group",
    "Account",
    "Provider",
    "GoogleProvider",
    "FacebookProvider",
    "GithubProvider",
    "LinkedInProvider",
    "ProviderAccountResult",
    "ResourceRegistry",
    "default_registry",
    "type_name_of",
    "ClassNameResolver",
    "ProviderResolver",
    "default_resolver",
]
