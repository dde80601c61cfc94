"""Test fixtures for jinjawire.

Importable collaborators referenced from YAML configs by import path:
- StaticUrlHelper / StaticServerUrlHelper: deterministic URL helpers
- BannerExtension: a TemplateExtension adding a ``banner`` function
- GreeterRuntimeLoader: a RuntimeLoader supplying a Greeter runtime

Templates live in ``templates/``.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinjawire.environment import TemplateExtension
from jinjawire.helpers import ServerUrlHelper, UrlHelper
from jinjawire.runtime import RuntimeLoader

FIXTURES_DIR = Path(__file__).parent

TEMPLATES_DIR = FIXTURES_DIR / "templates"


class StaticUrlHelper(UrlHelper):
    def generate(self, route=None, route_params=None, query_params=None, fragment=None, options=None):
        return f"/{route or ''}"


class StaticServerUrlHelper(ServerUrlHelper):
    def generate(self, path=None):
        return f"http://localhost{path or '/'}"


class BannerExtension(TemplateExtension):
    def get_functions(self) -> dict[str, Callable[..., Any]]:
        return {"banner": lambda text: f"*** {text} ***"}


class Greeter:
    def greet(self, name: str) -> str:
        return f"Hello, {name}"


class GreeterRuntimeLoader(RuntimeLoader):
    def load(self, identifier: Any) -> Any | None:
        if identifier == "Greeter":
            return Greeter()
        return None
