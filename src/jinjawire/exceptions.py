"""Exception hierarchy for environment assembly.

Every error raised while wiring an environment derives from JinjawireError,
so callers (and the CLI) can catch a single base class.
"""

from typing import Any


def describe(value: Any) -> str:
    """Return a short "type (value)" description used in error messages."""
    type_name = type(value).__name__
    if isinstance(value, str):
        return f'{type_name} ("{value}")'
    if value is None or isinstance(value, bool | int | float):
        return f"{type_name} ({value!r})"
    return type_name


class JinjawireError(Exception):
    """Base class for all jinjawire errors."""


class ConfigurationError(JinjawireError, ValueError):
    """Raised when configuration is present but malformed."""

    def __init__(self, message: str, value: Any = None) -> None:
        self.value = value
        super().__init__(message)

    @classmethod
    def for_config_type(cls, config: Any) -> "ConfigurationError":
        return cls(
            f"Config service MUST be a mapping; received {type(config).__name__}",
            value=config,
        )

    @classmethod
    def for_section_type(cls, section: str, value: Any) -> "ConfigurationError":
        return cls(
            f'Config section "{section}" MUST be a mapping; received {describe(value)}',
            value=value,
        )


class ExtensionError(JinjawireError, TypeError):
    """Raised when an extension entry cannot be resolved to an extension."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Extension MUST be a jinja2 Extension instance or a service name "
            f"resolving to one; received {describe(value)}"
        )


class RuntimeLoaderError(JinjawireError, TypeError):
    """Raised when a runtime loader entry cannot be resolved to a RuntimeLoader."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(
            f"Runtime loader MUST be a RuntimeLoader instance or a service name "
            f"resolving to one; received {describe(value)}"
        )


class ServiceNotFoundError(JinjawireError, KeyError):
    """Raised when a container is asked for a service it does not hold."""

    def __init__(self, service: Any) -> None:
        self.service = service
        self.message = f"Service not registered: {service!r}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class RuntimeNotFoundError(JinjawireError, LookupError):
    """Raised when no runtime loader can supply the requested runtime."""

    def __init__(self, identifier: Any) -> None:
        self.identifier = identifier
        super().__init__(f"Unable to load runtime: {identifier!r}")
