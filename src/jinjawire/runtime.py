"""Runtime loaders.

A runtime is a helper object that template functions need at render time
(a formatter, a router, a translator) and that should only be built when a
template actually asks for it. Loaders map an identifier to such an object.
The environment keeps an ordered chain of loaders and asks each in turn.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from jinjawire.container import Container

logger = logging.getLogger(__name__)


class RuntimeLoader(ABC):
    """Maps an identifier to a runtime instance.

    Implementations return None for identifiers they do not know so the next
    loader in the chain gets a chance.
    """

    @abstractmethod
    def load(self, identifier: Any) -> Any | None:
        """Return the runtime for identifier, or None if not handled."""


class FactoryRuntimeLoader(RuntimeLoader):
    """Builds runtimes from a mapping of identifier to zero-argument factory."""

    def __init__(self, factories: Mapping[Any, Callable[[], Any]] | None = None) -> None:
        self._factories: dict[Any, Callable[[], Any]] = dict(factories or {})

    def load(self, identifier: Any) -> Any | None:
        factory = self._factories.get(identifier)
        if factory is None:
            return None
        logger.debug("Building runtime %r from factory", identifier)
        return factory()


class ContainerRuntimeLoader(RuntimeLoader):
    """Looks runtimes up as services in a container."""

    def __init__(self, container: Container) -> None:
        self._container = container

    def load(self, identifier: Any) -> Any | None:
        if not self._container.has(identifier):
            return None
        return self._container.get(identifier)
