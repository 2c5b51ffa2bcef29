"""
Shared error handling for the resource data store.
"""

from typing import Dict, Any, Optional


class AccessLayerException(Exception):
    """Base exception for data store components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ArgumentError(AccessLayerException, ValueError):
    """Invalid argument passed by the caller (never retried)."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("ARGUMENT_ERROR", message, details)


class Error:
    """Structured error body reported by the remote API.

    Wraps the decoded payload of a failed response. Only ``status`` is
    guaranteed; the remaining fields are whatever the server sent.
    """

    STATUS = "status"
    CODE = "code"
    MESSAGE = "message"
    DEVELOPER_MESSAGE = "developerMessage"
    MORE_INFO = "moreInfo"

    def __init__(self, payload: Optional[Dict[str, Any]] = None, status: Optional[int] = None):
        self.payload: Dict[str, Any] = dict(payload or {})
        if status is not None and self.payload.get(self.STATUS) is None:
            self.payload[self.STATUS] = status

    @property
    def status(self) -> Optional[int]:
        value = self.payload.get(self.STATUS)
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @property
    def code(self) -> Optional[int]:
        return self.payload.get(self.CODE)

    @property
    def message(self) -> Optional[str]:
        return self.payload.get(self.MESSAGE)

    @property
    def developer_message(self) -> Optional[str]:
        return self.payload.get(self.DEVELOPER_MESSAGE)

    @property
    def more_info(self) -> Optional[str]:
        return self.payload.get(self.MORE_INFO)

    def __repr__(self) -> str:
        return f"Error(status={self.status!r}, code={self.code!r}, message={self.message!r})"


class ResourceError(AccessLayerException):
    """Remote API returned a non-2xx response."""

    def __init__(self, error: Error):
        self.error = error
        message = error.message or error.developer_message or f"HTTP {error.status}"
        super().__init__("RESOURCE_ERROR", message, details=dict(error.payload))

    @property
    def status(self) -> Optional[int]:
        return self.error.status

    @property
    def error_code(self) -> Optional[int]:
        return self.error.code

    @property
    def developer_message(self) -> Optional[str]:
        return self.error.developer_message

    @property
    def more_info(self) -> Optional[str]:
        return self.error.more_info
