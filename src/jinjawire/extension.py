"""URL-generation extension.

Exposes the application's URL helpers to templates:

    {{ path('blog.post', {'id': post.id}) }}       -> /blog/42
    {{ url('blog.post', {'id': post.id}) }}        -> https://example.com/blog/42
    {{ absolute_url('/about') }}                   -> https://example.com/about
    {{ asset('css/site.css') }}                    -> https://cdn.example.com/css/site.css?v=3
"""

from collections.abc import Callable, Mapping
from typing import Any

from jinjawire.environment import TemplateExtension
from jinjawire.helpers import ServerUrlHelper, UrlHelper


class UrlExtension(TemplateExtension):
    """Template functions for route, absolute and asset URLs.

    Attributes:
        server_url_helper: Helper building absolute URLs
        url_helper: Helper building route paths
        assets_url: Prefix prepended to asset paths
        assets_version: Default cache-busting version for assets
        globals: Template globals owned by this extension
    """

    def __init__(
        self,
        server_url_helper: ServerUrlHelper,
        url_helper: UrlHelper,
        assets_url: str | None = None,
        assets_version: str | None = None,
        globals: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.server_url_helper = server_url_helper
        self.url_helper = url_helper
        self.assets_url = assets_url
        self.assets_version = assets_version
        self.globals: dict[str, Any] = dict(globals or {})

    def get_functions(self) -> dict[str, Callable[..., Any]]:
        return {
            "absolute_url": self.render_url_from_path,
            "asset": self.render_asset_url,
            "path": self.render_uri,
            "url": self.render_url,
        }

    def get_globals(self) -> dict[str, Any]:
        return dict(self.globals)

    def render_uri(
        self,
        route: str | None = None,
        route_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        fragment: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Generate a route path via the URL helper."""
        return self.url_helper.generate(route, route_params, query_params, fragment, options)

    def render_url(
        self,
        route: str | None = None,
        route_params: Mapping[str, Any] | None = None,
        query_params: Mapping[str, Any] | None = None,
        fragment: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> str:
        """Generate an absolute URL for a route."""
        path = self.render_uri(route, route_params, query_params, fragment, options)
        return self.render_url_from_path(path)

    def render_url_from_path(self, path: str | None = None) -> str:
        return self.server_url_helper.generate(path)

    def render_asset_url(self, path: str, version: str | None = None) -> str:
        """Build an asset URL, appending ``?v=<version>`` when one is known.

        A non-empty per-call version overrides the configured one.
        """
        assets_version = version or self.assets_version
        suffix = f"?v={assets_version}" if assets_version else ""
        return f"{self.assets_url or ''}{path}{suffix}"
