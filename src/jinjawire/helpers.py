"""URL helper interfaces.

Applications provide implementations backed by their router and request.
They are registered in the container under these classes and handed to
UrlExtension unmodified.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class UrlHelper(ABC):
    """Generates application-relative URLs from named routes."""

    @abstractmethod
    def generate(
        self,
        route: str | None = None,
        route_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        fragment: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Return the path for route (the current route when None)."""


class ServerUrlHelper(ABC):
    """Turns a path into an absolute URL for the current server."""

    @abstractmethod
    def generate(self, path: str | None = None) -> str:
        """Return the absolute URL for path (the current URI when None)."""
