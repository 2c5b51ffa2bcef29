"""
API key credentials.
"""

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class ApiKey:
    id: str
    secret: str

    def basic_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.id, self.secret)

    def __repr__(self) -> str:
        return f"ApiKey(id={self.id!r}, secret='****')"
