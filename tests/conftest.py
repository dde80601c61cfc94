"""Shared pytest fixtures for jinjawire tests.

Fixtures are organized by category:
- Container fixtures: containers with and without configuration
- Helper fixtures: mocked URL helpers
- Configuration fixtures: sample configuration mappings
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from jinjawire.container import ServiceContainer
from jinjawire.helpers import ServerUrlHelper, UrlHelper

# =============================================================================
# Container Fixtures
# =============================================================================


@pytest.fixture
def make_container() -> Callable[..., ServiceContainer]:
    """Return a builder for containers holding an optional config service."""

    def build(config: Any = None, **services: Any) -> ServiceContainer:
        container = ServiceContainer(services)
        if config is not None:
            container.set("config", config)
        return container

    return build


@pytest.fixture
def container() -> ServiceContainer:
    """Return an empty container."""
    return ServiceContainer()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def url_helper() -> Mock:
    """Return a mocked UrlHelper producing /<route> paths."""
    helper = Mock(spec=UrlHelper)
    helper.generate.side_effect = lambda route=None, *args, **kwargs: f"/{route or ''}"
    return helper


@pytest.fixture
def server_url_helper() -> Mock:
    """Return a mocked ServerUrlHelper prefixing https://example.com."""
    helper = Mock(spec=ServerUrlHelper)
    helper.generate.side_effect = lambda path=None: f"https://example.com{path or '/'}"
    return helper


@pytest.fixture
def with_helpers(
    url_helper: Mock,
    server_url_helper: Mock,
) -> Callable[[ServiceContainer], ServiceContainer]:
    """Return a function registering both URL helpers in a container."""

    def register(container: ServiceContainer) -> ServiceContainer:
        container.set(UrlHelper, url_helper)
        container.set(ServerUrlHelper, server_url_helper)
        return container

    return register


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def full_config(tmp_path: Path) -> dict[str, Any]:
    """Return a configuration using every recognized key."""
    return {
        "debug": True,
        "templates": {
            "cache_dir": str(tmp_path / "cache"),
            "assets_url": "http://assets.example.com/",
            "assets_version": "XYZ",
        },
        "twig": {
            "extensions": [],
            "globals": {"ga_tracking": "UA-XXXXX-X", "foo": "bar"},
            "timezone": "Europe/Paris",
            "runtime_loaders": [],
        },
    }
