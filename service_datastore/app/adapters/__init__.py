"""
Adapters package for the data store.

HTTP-facing pieces: the pluggable transport and the request executor that
turns (method, href, body, query) into a decoded response or a
``ResourceError``. Keep adapters thin; cache and resource logic belong to
the data store.
"""

from .request_executor import BodyEncodingPolicy, RequestExecutor
from .transport import HttpxTransport, Transport, TransportResponse

__all__ = [
    "BodyEncodingPolicy",
    "RequestExecutor",
    "HttpxTransport",
    "Transport",
    "TransportResponse",
]
