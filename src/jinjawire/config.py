"""Configuration for environment assembly.

The factory reads a plain mapping from the container's ``config`` service.
EnvironmentSettings is the validated, typed view of that mapping. YAML files
(with ${VAR} environment variable substitution) can be loaded into such a
mapping and turned into a ready container for command line use.

Recognized keys (all optional):

    debug: false
    templates:
      cache_dir: /var/cache/templates
      assets_url: https://cdn.example.com/
      assets_version: "3"
      paths: [templates]              # or {namespace: [dirs]}
    twig:
      extensions: [my_extension_service]
      runtime_loaders: [my_loader_service]
      globals: {ga_tracking: UA-XXXXX-X}
      timezone: Europe/Paris
      autoescape: [html, xml]
      optimizations: true
      auto_reload: null               # defaults to debug
    services:
      my_extension_service: myapp.templating:MyExtension
    helpers:
      url: myapp.routing:RouterUrlHelper
      server_url: myapp.routing:RequestServerUrlHelper

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.jinjawire/config.yaml
3. ./jinjawire.yaml
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from jinjawire.container import ServiceContainer, service_from_path
from jinjawire.exceptions import ConfigurationError, describe
from jinjawire.helpers import ServerUrlHelper, UrlHelper

logger = logging.getLogger(__name__)

CONFIG_SERVICE = "config"

DEFAULT_AUTOESCAPE = ["html", "xml"]

# =============================================================================
# Settings Dataclasses
# =============================================================================


@dataclass
class TemplatesSettings:
    """The ``templates`` section.

    Attributes:
        cache_dir: Bytecode cache directory, False to disable caching
        assets_url: Prefix for asset URLs
        assets_version: Default asset version for cache busting
        paths: Template directories, or namespace to directories
    """

    cache_dir: str | bool = False
    assets_url: str | None = None
    assets_version: str | None = None
    paths: list[str] | dict[str, list[str]] = field(default_factory=list)


@dataclass
class TwigSettings:
    """The ``twig`` section (engine-level settings).

    ``cache_dir``, ``assets_url`` and ``assets_version`` override their
    ``templates`` counterparts when set.
    """

    extensions: list[Any] = field(default_factory=list)
    runtime_loaders: list[Any] = field(default_factory=list)
    globals: dict[str, Any] = field(default_factory=dict)
    timezone: str | None = None
    autoescape: bool | list[str] = field(default_factory=lambda: list(DEFAULT_AUTOESCAPE))
    optimizations: bool = True
    auto_reload: bool | None = None
    cache_dir: str | bool | None = None
    assets_url: str | None = None
    assets_version: str | None = None


@dataclass
class EnvironmentSettings:
    """Validated view over the configuration mapping."""

    debug: bool = False
    templates: TemplatesSettings = field(default_factory=TemplatesSettings)
    twig: TwigSettings = field(default_factory=TwigSettings)

    @property
    def cache_dir(self) -> str | bool:
        if self.twig.cache_dir is not None:
            return self.twig.cache_dir
        return self.templates.cache_dir

    @property
    def assets_url(self) -> str | None:
        if self.twig.assets_url is not None:
            return self.twig.assets_url
        return self.templates.assets_url

    @property
    def assets_version(self) -> str | None:
        if self.twig.assets_version is not None:
            return self.twig.assets_version
        return self.templates.assets_version

    @property
    def auto_reload(self) -> bool:
        if self.twig.auto_reload is not None:
            return self.twig.auto_reload
        return self.debug

    @classmethod
    def from_mapping(cls, config: Any) -> "EnvironmentSettings":
        """Build settings from a configuration value.

        Args:
            config: Configuration as fetched from the container

        Returns:
            EnvironmentSettings instance

        Raises:
            ConfigurationError: If config or one of its sections has the wrong shape
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError.for_config_type(config)

        templates_data = _section(config, "templates")
        twig_data = _section(config, "twig")

        templates = TemplatesSettings(
            cache_dir=templates_data.get("cache_dir") or False,
            assets_url=templates_data.get("assets_url"),
            assets_version=_optional_str(templates_data.get("assets_version")),
            paths=_paths(templates_data.get("paths")),
        )

        timezone = twig_data.get("timezone")
        if timezone is not None and not isinstance(timezone, str):
            raise ConfigurationError(
                f"Timezone MUST be a string identifier; received {describe(timezone)}",
                value=timezone,
            )

        twig = TwigSettings(
            extensions=_sequence(twig_data, "extensions", "twig.extensions"),
            runtime_loaders=_sequence(twig_data, "runtime_loaders", "twig.runtime_loaders"),
            globals=dict(_section(twig_data, "globals", "twig.globals")),
            timezone=timezone,
            autoescape=_autoescape(twig_data.get("autoescape")),
            optimizations=_bool(twig_data, "optimizations", "twig.optimizations", True),
            auto_reload=_bool(twig_data, "auto_reload", "twig.auto_reload", None),
            cache_dir=twig_data.get("cache_dir"),
            assets_url=twig_data.get("assets_url"),
            assets_version=_optional_str(twig_data.get("assets_version")),
        )

        return cls(
            debug=_bool(config, "debug", "debug", False),
            templates=templates,
            twig=twig,
        )


def _section(data: Mapping[str, Any], key: str, label: str | None = None) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError.for_section_type(label or key, value)
    return value


def _sequence(data: Mapping[str, Any], key: str, label: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, str | bytes) or not isinstance(value, list | tuple):
        raise ConfigurationError(
            f'Config entry "{label}" MUST be a list; received {describe(value)}',
            value=value,
        )
    return list(value)


def _bool(data: Mapping[str, Any], key: str, label: str, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(
            f'Config entry "{label}" MUST be a boolean; received {describe(value)}',
            value=value,
        )
    return value


def _string_list(value: Any, label: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list | tuple) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigurationError(
        f'Config entry "{label}" MUST be a string or a list of strings; '
        f"received {describe(value)}",
        value=value,
    )


def _autoescape(value: Any) -> bool | list[str]:
    if value is None:
        return list(DEFAULT_AUTOESCAPE)
    if isinstance(value, bool):
        return value
    return _string_list(value, "twig.autoescape")


def _optional_str(value: Any) -> str | None:
    # YAML turns unquoted versions like 3 or 1.2 into numbers
    if value is None:
        return None
    return str(value)


def _paths(value: Any) -> list[str] | dict[str, list[str]]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        return {
            str(namespace): _string_list(dirs, f"templates.paths.{namespace}")
            for namespace, dirs in value.items()
        }
    if isinstance(value, list | tuple):
        return [str(p) for p in value]
    raise ConfigurationError(
        f'Config entry "templates.paths" MUST be a list or mapping; received {describe(value)}',
        value=value,
    )


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute ${VAR} references in config values.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ConfigurationError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ConfigurationError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery and Loading
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find a configuration file in the standard locations.

    Args:
        start_path: Directory to search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    start_path = (start_path or Path.cwd()).resolve()

    candidates = [
        start_path / ".jinjawire" / "config.yaml",
        start_path / "jinjawire.yaml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> dict[str, Any]:
    """Load a configuration mapping from a YAML file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for a config file if none is given

    Returns:
        Configuration mapping (empty when no file is found)

    Raises:
        FileNotFoundError: If config_path is given but doesn't exist
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path: Path | None = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is None:
        return {}

    try:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {found_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError.for_config_type(data)

    logger.debug("Loaded config from %s", found_path)
    return substitute_env_vars(data)


def build_container(config: Mapping[str, Any]) -> ServiceContainer:
    """Create a container holding config and the services it declares.

    ``services`` entries are registered lazily under their name. ``helpers``
    entries ``url`` and ``server_url`` are registered under UrlHelper and
    ServerUrlHelper.

    Args:
        config: Configuration mapping

    Returns:
        Populated ServiceContainer
    """
    container = ServiceContainer({CONFIG_SERVICE: config})

    for name, path in _section(config, "services").items():
        container.factory(name, service_from_path(str(path)))

    helpers = _section(config, "helpers")
    for key, identifier in (("url", UrlHelper), ("server_url", ServerUrlHelper)):
        if key in helpers:
            container.factory(identifier, service_from_path(str(helpers[key])))

    return container
