"""Create a configured TemplateEnvironment from a service container.

The factory reads the optional ``config`` service, validates it, builds the
environment and attaches:
- the URL extension, when both URL helpers are available
- configured extensions, in order
- configured runtime loaders, in order

Debug mode turns on strict undefined handling and auto reload together.
"""

import logging
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jinja2 import BaseLoader, FileSystemLoader, PrefixLoader, select_autoescape
from jinja2.ext import Extension

from jinjawire.config import CONFIG_SERVICE, EnvironmentSettings
from jinjawire.container import Container
from jinjawire.environment import TemplateEnvironment
from jinjawire.exceptions import ConfigurationError, ExtensionError, RuntimeLoaderError
from jinjawire.extension import UrlExtension
from jinjawire.helpers import ServerUrlHelper, UrlHelper
from jinjawire.runtime import RuntimeLoader

logger = logging.getLogger(__name__)


class EnvironmentFactory:
    """Builds TemplateEnvironment instances from a container.

    Usage:
        factory = EnvironmentFactory()
        environment = factory(container)
    """

    def __call__(self, container: Container) -> TemplateEnvironment:
        return self.create(container)

    def create(self, container: Container) -> TemplateEnvironment:
        """Assemble an environment.

        Every entry is resolved before the environment is returned; a failure
        at any step raises and the partially built environment is discarded.

        Args:
            container: Container providing config, helpers and named services

        Returns:
            Configured TemplateEnvironment

        Raises:
            ConfigurationError: If config is malformed or the timezone is unknown
            ExtensionError: If an extension entry cannot be resolved
            RuntimeLoaderError: If a runtime loader entry cannot be resolved
        """
        config = container.get(CONFIG_SERVICE) if container.has(CONFIG_SERVICE) else {}
        settings = EnvironmentSettings.from_mapping(config)

        environment = TemplateEnvironment(
            debug=settings.debug,
            cache=settings.cache_dir,
            strict_variables=settings.debug,
            auto_reload=settings.auto_reload,
            autoescape=_autoescape(settings.twig.autoescape),
            optimized=settings.twig.optimizations,
            loader=_loader(settings.templates.paths),
        )
        logger.debug(
            "Created environment (debug=%s, cache=%s)", settings.debug, settings.cache_dir
        )

        if settings.twig.timezone:
            environment.set_timezone(_timezone(settings.twig.timezone))

        if container.has(ServerUrlHelper) and container.has(UrlHelper):
            environment.add_extension(
                UrlExtension(
                    container.get(ServerUrlHelper),
                    container.get(UrlHelper),
                    assets_url=settings.assets_url,
                    assets_version=settings.assets_version,
                    globals=settings.twig.globals,
                )
            )

        for extension in settings.twig.extensions:
            environment.add_extension(self._load_extension(extension, container))

        for loader in settings.twig.runtime_loaders:
            environment.add_runtime_loader(self._load_runtime_loader(loader, container))

        return environment

    def _load_extension(self, extension: Any, container: Container) -> Extension | type[Extension]:
        """Resolve an extension entry to an extension instance or class.

        Raises:
            ExtensionError: If the entry does not resolve to an extension
        """
        if isinstance(extension, str) and container.has(extension):
            extension = container.get(extension)

        if isinstance(extension, Extension):
            return extension
        if isinstance(extension, type) and issubclass(extension, Extension):
            return extension

        raise ExtensionError(extension)

    def _load_runtime_loader(self, loader: Any, container: Container) -> RuntimeLoader:
        """Resolve a runtime loader entry to a RuntimeLoader.

        Raises:
            RuntimeLoaderError: If the entry does not resolve to a RuntimeLoader
        """
        if isinstance(loader, str) and container.has(loader):
            loader = container.get(loader)

        if not isinstance(loader, RuntimeLoader):
            raise RuntimeLoaderError(loader)

        return loader


def _timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone identifier: {name}", value=name) from e


def _autoescape(setting: bool | list[str]) -> Any:
    if isinstance(setting, bool):
        return setting
    return select_autoescape(setting)


def _loader(paths: list[str] | dict[str, list[str]]) -> BaseLoader | None:
    if not paths:
        return None
    if isinstance(paths, dict):
        return PrefixLoader({ns: FileSystemLoader(dirs) for ns, dirs in paths.items()})
    return FileSystemLoader(paths)
