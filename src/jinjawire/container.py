"""Service container capability and a small implementation.

The environment factory only needs two things from a container: ``has`` and
``get``. Any object providing them can be passed in; ServiceContainer is a
dict-backed implementation used by the CLI and the tests.

Service identifiers are any hashable value. Strings are used for configured
services, classes for well-known collaborators such as the URL helpers.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Hashable, Mapping
from typing import Any

from jinjawire.exceptions import ConfigurationError, ServiceNotFoundError

logger = logging.getLogger(__name__)


class Container(ABC):
    """Read-only view of a service container."""

    @abstractmethod
    def has(self, identifier: Hashable) -> bool:
        """Return True if a service is registered under identifier."""

    @abstractmethod
    def get(self, identifier: Hashable) -> Any:
        """Return the service registered under identifier.

        Raises:
            ServiceNotFoundError: If nothing is registered under identifier
        """


class ServiceContainer(Container):
    """Registry of services and lazy service factories.

    Factories are invoked with the container on first ``get`` and the result
    is shared afterwards.

    Usage:
        container = ServiceContainer()
        container.set("config", {"debug": True})
        container.factory(UrlHelper, lambda c: RouterUrlHelper(c.get("router")))
    """

    def __init__(self, services: Mapping[Hashable, Any] | None = None) -> None:
        """Initialize the container.

        Args:
            services: Initial services keyed by identifier
        """
        self._services: dict[Hashable, Any] = dict(services or {})
        self._factories: dict[Hashable, Callable[["ServiceContainer"], Any]] = {}

    def set(self, identifier: Hashable, service: Any) -> None:
        """Register a ready-made service, replacing any previous entry."""
        self._factories.pop(identifier, None)
        self._services[identifier] = service

    def factory(
        self,
        identifier: Hashable,
        factory: Callable[["ServiceContainer"], Any],
    ) -> None:
        """Register a factory building the service on first access."""
        self._services.pop(identifier, None)
        self._factories[identifier] = factory

    def has(self, identifier: Hashable) -> bool:
        return identifier in self._services or identifier in self._factories

    def get(self, identifier: Hashable) -> Any:
        if identifier in self._services:
            return self._services[identifier]

        factory = self._factories.get(identifier)
        if factory is None:
            raise ServiceNotFoundError(identifier)

        logger.debug("Instantiating service %r", identifier)
        service = factory(self)
        self._services[identifier] = service
        del self._factories[identifier]
        return service


def import_object(path: str) -> Any:
    """Import an object from a ``package.module:attribute`` path.

    A dotted path without a colon is also accepted; its last segment is taken
    as the attribute.

    Raises:
        ConfigurationError: If the module or attribute cannot be found
    """
    if ":" in path:
        module_name, _, attribute = path.partition(":")
    else:
        module_name, _, attribute = path.rpartition(".")

    if not module_name or not attribute:
        raise ConfigurationError(f"Invalid import path: {path}", value=path)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module for {path}: {e}", value=path) from e

    obj: Any = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigurationError(f"Cannot resolve {path}: {e}", value=path) from e
    return obj


def service_from_path(path: str) -> Callable[[ServiceContainer], Any]:
    """Return a lazy factory for a service declared by import path.

    Classes and other callables are called without arguments; anything else
    is used as-is.
    """

    def build(_container: ServiceContainer) -> Any:
        target = import_object(path)
        return target() if callable(target) else target

    return build
