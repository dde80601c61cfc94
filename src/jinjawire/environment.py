"""Jinja2 environment with an extension registry and runtime loaders.

TemplateEnvironment adds to jinja2.Environment what the factory wires up:
- a debug flag that drives strict undefined handling and auto reload
- an optional on-disk bytecode cache
- a configurable timezone owned by CoreExtension
- extension instances (not just classes) contributing filters, functions,
  tests and globals
- an ordered chain of runtime loaders
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, tzinfo
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemBytecodeCache, StrictUndefined
from jinja2.ext import Extension
from jinja2.utils import import_string

from jinjawire.exceptions import RuntimeNotFoundError
from jinjawire.runtime import RuntimeLoader

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%B %d, %Y %H:%M"


class TemplateExtension(Extension):
    """Base class for extensions contributing callables and globals.

    Subclasses override any of the ``get_*`` hooks. The environment copies
    their results into its filters, tests and globals when the extension is
    registered. Template functions are exposed as globals, the way Jinja2
    exposes callables to templates.
    """

    def __init__(self, environment: Environment | None = None) -> None:
        super().__init__(environment)  # type: ignore[arg-type]

    def get_filters(self) -> dict[str, Callable[..., Any]]:
        return {}

    def get_functions(self) -> dict[str, Callable[..., Any]]:
        return {}

    def get_tests(self) -> dict[str, Callable[..., bool]]:
        return {}

    def get_globals(self) -> dict[str, Any]:
        return {}


class CoreExtension(TemplateExtension):
    """Holds the environment timezone and the ``date`` filter using it."""

    def __init__(
        self,
        environment: Environment | None = None,
        timezone: tzinfo | None = None,
    ) -> None:
        super().__init__(environment)
        self._timezone: tzinfo = timezone or UTC

    def get_timezone(self) -> tzinfo:
        return self._timezone

    def set_timezone(self, timezone: tzinfo) -> None:
        self._timezone = timezone

    def get_filters(self) -> dict[str, Callable[..., Any]]:
        return {"date": self.format_date}

    def format_date(
        self,
        value: datetime | date | int | float | str | None = None,
        format: str = DEFAULT_DATE_FORMAT,
        timezone: tzinfo | None = None,
    ) -> str:
        """Format a date in the environment timezone.

        Args:
            value: Datetime, date, POSIX timestamp, ISO string, or None for now
            format: strftime format
            timezone: Zone to convert to instead of the environment default

        Returns:
            Formatted date string
        """
        zone = timezone or self._timezone

        if value is None:
            dt = datetime.now(zone)
        elif isinstance(value, datetime):
            # Naive datetimes are taken to be in the environment timezone
            dt = value.astimezone(zone) if value.tzinfo else value.replace(tzinfo=zone)
        elif isinstance(value, date):
            dt = datetime(value.year, value.month, value.day, tzinfo=zone)
        elif isinstance(value, int | float):
            dt = datetime.fromtimestamp(value, zone)
        else:
            parsed = datetime.fromisoformat(value)
            dt = parsed.astimezone(zone) if parsed.tzinfo else parsed.replace(tzinfo=zone)

        return dt.strftime(format)


class TemplateEnvironment(Environment):
    """Jinja2 environment assembled by EnvironmentFactory.

    Attributes:
        debug: Whether the environment was built for development
    """

    def __init__(
        self,
        *,
        debug: bool = False,
        cache: str | Path | bool = False,
        strict_variables: bool = False,
        auto_reload: bool | None = None,
        timezone: tzinfo | None = None,
        **options: Any,
    ) -> None:
        """Initialize the environment.

        Args:
            debug: Development mode flag
            cache: Directory for compiled template bytecode, False to disable
            strict_variables: Raise on undefined variables instead of rendering ""
            auto_reload: Check templates for changes; defaults to ``debug``
            timezone: Timezone used by the ``date`` filter (UTC if omitted)
            **options: Passed through to jinja2.Environment
        """
        if auto_reload is None:
            auto_reload = debug
        if strict_variables:
            options["undefined"] = StrictUndefined
        if cache:
            options["bytecode_cache"] = FileSystemBytecodeCache(str(cache))

        super().__init__(auto_reload=auto_reload, **options)

        self.debug = debug
        self._cache_dir = cache or False
        self._runtime_loaders: list[RuntimeLoader] = []
        self._runtimes: dict[Any, Any] = {}

        # Extensions given to jinja2.Environment skip add_extension
        for extension in list(self.extensions.values()):
            self._register_contributions(extension)

        self.add_extension(CoreExtension(timezone=timezone))

    # =========================================================================
    # Settings
    # =========================================================================

    @property
    def cache_dir(self) -> str | Path | bool:
        """Bytecode cache directory, or False when caching is disabled."""
        return self._cache_dir

    @property
    def strict_variables(self) -> bool:
        return isinstance(self.undefined, type) and issubclass(self.undefined, StrictUndefined)

    @property
    def timezone(self) -> tzinfo:
        return self.get_extension(CoreExtension).get_timezone()

    def set_timezone(self, timezone: tzinfo) -> None:
        self.get_extension(CoreExtension).set_timezone(timezone)

    # =========================================================================
    # Extensions
    # =========================================================================

    def add_extension(self, extension: Extension | type[Extension] | str) -> None:  # type: ignore[override]
        """Register an extension.

        Accepts an extension instance (bound to this environment as a copy),
        an extension class, or an import path as jinja2 does.
        """
        if isinstance(extension, Extension):
            bound = extension.bind(self)
        else:
            if isinstance(extension, str):
                extension = import_string(extension)
            bound = extension(self)  # type: ignore[operator]

        self.extensions[bound.identifier] = bound
        self._register_contributions(bound)
        logger.debug("Registered extension %s", bound.identifier)

    def has_extension(self, key: type[Extension] | str) -> bool:
        return _extension_id(key) in self.extensions

    def get_extension(self, key: type[Extension] | str) -> Any:
        """Return the registered extension for a class or identifier.

        Raises:
            KeyError: If no such extension is registered
        """
        identifier = _extension_id(key)
        try:
            return self.extensions[identifier]
        except KeyError:
            raise KeyError(f"Extension not registered: {identifier}") from None

    def _register_contributions(self, extension: Extension) -> None:
        if not isinstance(extension, TemplateExtension):
            return
        self.filters.update(extension.get_filters())
        self.tests.update(extension.get_tests())
        self.globals.update(extension.get_functions())
        self.globals.update(extension.get_globals())

    # =========================================================================
    # Runtime loaders
    # =========================================================================

    @property
    def runtime_loaders(self) -> tuple[RuntimeLoader, ...]:
        return tuple(self._runtime_loaders)

    def add_runtime_loader(self, loader: RuntimeLoader) -> None:
        """Append a loader; earlier loaders take precedence."""
        self._runtime_loaders.append(loader)

    def get_runtime(self, identifier: Any) -> Any:
        """Return the runtime for identifier from the first loader supplying it.

        Runtimes are cached per identifier for the lifetime of the environment.

        Raises:
            RuntimeNotFoundError: If no loader supplies the runtime
        """
        if identifier in self._runtimes:
            return self._runtimes[identifier]

        for loader in self._runtime_loaders:
            runtime = loader.load(identifier)
            if runtime is not None:
                self._runtimes[identifier] = runtime
                return runtime

        raise RuntimeNotFoundError(identifier)


def _extension_id(key: type[Extension] | str) -> str:
    if isinstance(key, str):
        return key
    return key.identifier
