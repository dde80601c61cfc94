"""jinjawire - build configured Jinja2 environments from a service container.

The EnvironmentFactory reads an optional ``config`` service, validates it and
returns a TemplateEnvironment with debug settings, bytecode cache, timezone,
URL helpers, extensions and runtime loaders wired in.

Usage:
    from jinjawire import EnvironmentFactory, ServiceContainer

    container = ServiceContainer({"config": {"debug": True}})
    environment = EnvironmentFactory()(container)
"""

from jinjawire.container import Container, ServiceContainer
from jinjawire.environment import CoreExtension, TemplateEnvironment, TemplateExtension
from jinjawire.exceptions import (
    ConfigurationError,
    ExtensionError,
    JinjawireError,
    RuntimeLoaderError,
    RuntimeNotFoundError,
    ServiceNotFoundError,
)
from jinjawire.extension import UrlExtension
from jinjawire.factory import EnvironmentFactory
from jinjawire.helpers import ServerUrlHelper, UrlHelper
from jinjawire.runtime import ContainerRuntimeLoader, FactoryRuntimeLoader, RuntimeLoader

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Container",
    "ContainerRuntimeLoader",
    "CoreExtension",
    "EnvironmentFactory",
    "ExtensionError",
    "FactoryRuntimeLoader",
    "JinjawireError",
    "RuntimeLoader",
    "RuntimeLoaderError",
    "RuntimeNotFoundError",
    "ServerUrlHelper",
    "ServiceContainer",
    "ServiceNotFoundError",
    "TemplateEnvironment",
    "TemplateExtension",
    "UrlExtension",
    "UrlHelper",
    "__version__",
]
