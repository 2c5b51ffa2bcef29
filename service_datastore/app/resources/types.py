"""
Concrete resource types known to the default registry.
"""

from typing import Any, Dict, Optional

from shared.errors import ArgumentError

from .base import CustomData, Property, Resource


class InstanceResource(Resource):
    """A resource that can be saved and deleted through its data store."""

    def _require_data_store(self):
        if self.data_store is None:
            raise ArgumentError(f"{type(self).__name__} is not bound to a data store.")
        return self.data_store

    def save(self) -> "InstanceResource":
        self._require_data_store().save(self)
        return self

    def delete(self) -> None:
        self._require_data_store().delete(self)


class Tenant(InstanceResource):
    TYPE_NAME = "Tenant"

    name = Property("name")
    key = Property("key")


class Directory(InstanceResource):
    TYPE_NAME = "Directory"

    name = Property("name")
    description = Property("description")
    status = Property("status")
    provider = Property("provider")


class Application(InstanceResource):
    TYPE_NAME = "Application"

    name = Property("name")
    description = Property("description")
    status = Property("status")


class Group(InstanceResource):
    TYPE_NAME = "Group"

    name = Property("name")
    description = Property("description")
    status = Property("status")
    directory = Property("directory")


class Account(InstanceResource):
    TYPE_NAME = "Account"

    username = Property("username")
    email = Property("email")
    given_name = Property("givenName")
    surname = Property("surname")
    password = Property("password")
    status = Property("status")
    directory = Property("directory")

    @property
    def custom_data(self) -> Optional[CustomData]:
        return self.get_property("customData")


class Provider(Resource):
    """Directory provider; the concrete type depends on ``providerId``."""

    TYPE_NAME = "Provider"

    provider_id = Property("providerId")


class GoogleProvider(Provider):
    TYPE_NAME = "GoogleProvider"

    client_id = Property("clientId")
    client_secret = Property("clientSecret")
    redirect_uri = Property("redirectUri")


class FacebookProvider(Provider):
    TYPE_NAME = "FacebookProvider"

    client_id = Property("clientId")
    client_secret = Property("clientSecret")


class GithubProvider(Provider):
    TYPE_NAME = "GithubProvider"

    client_id = Property("clientId")
    client_secret = Property("clientSecret")


class LinkedInProvider(Provider):
    TYPE_NAME = "LinkedInProvider"

    client_id = Property("clientId")
    client_secret = Property("clientSecret")


class ProviderAccountResult(Resource):
    """Outcome of a provider-account login: the account plus whether it is new."""

    TYPE_NAME = "ProviderAccountResult"
    NEW_ACCOUNT_PROP_NAME = "newAccount"

    @property
    def is_new_account(self) -> bool:
        return bool(self.get_property(self.NEW_ACCOUNT_PROP_NAME))

    @property
    def account(self) -> Account:
        data: Dict[str, Any] = {
            name: value for name, value in self.get_properties().items()
            if name != self.NEW_ACCOUNT_PROP_NAME
        }
        return Account(data, self.options, self.data_store)


DEFAULT_RESOURCE_TYPES = (
    Resource,
    CustomData,
    Tenant,
    Directory,
    Application,
    Group,
    Account,
    Provider,
    GoogleProvider,
    FacebookProvider,
    GithubProvider,
    LinkedInProvider,
    ProviderAccountResult,
)
