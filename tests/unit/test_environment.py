"""Unit tests for TemplateEnvironment and its extension registry."""

from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest
from jinja2 import FileSystemLoader, UndefinedError
from jinja2.ext import loopcontrols

from jinjawire.environment import CoreExtension, TemplateEnvironment, TemplateExtension
from jinjawire.exceptions import RuntimeNotFoundError
from jinjawire.runtime import FactoryRuntimeLoader, RuntimeLoader


class ShoutExtension(TemplateExtension):
    """Extension contributing one of each kind of callable."""

    def __init__(self, suffix: str = "!") -> None:
        super().__init__()
        self.suffix = suffix

    def get_filters(self) -> dict[str, Callable[..., Any]]:
        return {"shout": lambda value: f"{value.upper()}{self.suffix}"}

    def get_tests(self) -> dict[str, Callable[..., bool]]:
        return {"loud": lambda value: value.isupper()}

    def get_functions(self) -> dict[str, Callable[..., Any]]:
        return {"whisper": lambda value: value.lower()}

    def get_globals(self) -> dict[str, Any]:
        return {"volume": 11}


class TestSettings:
    """Tests for environment settings."""

    def test_strict_variables_raise_on_undefined(self) -> None:
        """Test strict mode fails on undefined variables."""
        environment = TemplateEnvironment(strict_variables=True)

        with pytest.raises(UndefinedError):
            environment.from_string("{{ missing }}").render()

    def test_lenient_variables_render_empty(self) -> None:
        """Test lenient mode renders undefined variables as empty."""
        environment = TemplateEnvironment()

        assert environment.from_string("[{{ missing }}]").render() == "[]"

    def test_auto_reload_follows_debug(self) -> None:
        """Test auto_reload defaults to the debug flag."""
        assert TemplateEnvironment(debug=True).auto_reload is True
        assert TemplateEnvironment(debug=False).auto_reload is False
        assert TemplateEnvironment(debug=True, auto_reload=False).auto_reload is False

    def test_cache_disabled_by_default(self) -> None:
        """Test no bytecode cache is configured by default."""
        environment = TemplateEnvironment()

        assert environment.cache_dir is False
        assert environment.bytecode_cache is None

    def test_bytecode_cache_written(self, tmp_path) -> None:
        """Test compiled templates land in the cache directory."""
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "page.txt").write_text("cached {{ 1 + 1 }}")
        (tmp_path / "cache").mkdir()

        environment = TemplateEnvironment(
            cache=tmp_path / "cache",
            loader=FileSystemLoader(str(tmp_path / "templates")),
        )

        assert environment.get_template("page.txt").render() == "cached 2"
        assert list((tmp_path / "cache").iterdir())

    def test_set_timezone(self) -> None:
        """Test the timezone can be changed after construction."""
        environment = TemplateEnvironment()

        environment.set_timezone(ZoneInfo("Asia/Tokyo"))

        assert environment.timezone == ZoneInfo("Asia/Tokyo")


class TestExtensionRegistry:
    """Tests for add_extension, has_extension and get_extension."""

    def test_core_extension_always_registered(self) -> None:
        """Test every environment carries the core extension."""
        environment = TemplateEnvironment()

        assert environment.has_extension(CoreExtension)
        assert "date" in environment.filters

    def test_instance_contributions(self) -> None:
        """Test an instance's filters, tests, functions and globals are installed."""
        environment = TemplateEnvironment()

        environment.add_extension(ShoutExtension(suffix="?"))

        rendered = environment.from_string(
            "{{ 'hi' | shout }} {{ 'HI' is loud }} {{ whisper('HEY') }} {{ volume }}"
        ).render()
        assert rendered == "HI? True hey 11"

    def test_instance_is_bound_as_copy(self) -> None:
        """Test registration binds a copy to the environment."""
        extension = ShoutExtension()
        environment = TemplateEnvironment()

        environment.add_extension(extension)
        registered = environment.get_extension(ShoutExtension)

        assert registered is not extension
        assert registered.environment is environment
        assert extension.environment is None
        assert registered.suffix == "!"

    def test_same_instance_in_two_environments(self) -> None:
        """Test one instance can be registered with several environments."""
        extension = ShoutExtension()
        first = TemplateEnvironment()
        second = TemplateEnvironment()

        first.add_extension(extension)
        second.add_extension(extension)

        assert first.get_extension(ShoutExtension).environment is first
        assert second.get_extension(ShoutExtension).environment is second

    def test_lookup_by_identifier_string(self) -> None:
        """Test extensions can be looked up by identifier."""
        environment = TemplateEnvironment()
        environment.add_extension(ShoutExtension())

        assert environment.has_extension(ShoutExtension.identifier)
        assert isinstance(environment.get_extension(ShoutExtension.identifier), ShoutExtension)

    def test_jinja_extension_class_and_import_path(self) -> None:
        """Test jinja2-native extension forms still work."""
        environment = TemplateEnvironment()

        environment.add_extension(loopcontrols)
        environment.add_extension("jinja2.ext.debug")

        assert environment.has_extension(loopcontrols)
        assert environment.has_extension("jinja2.ext.DebugExtension")

    def test_extensions_passed_to_constructor_contribute(self) -> None:
        """Test extension classes given to the constructor are installed."""

        class Constructed(TemplateExtension):
            def get_globals(self) -> dict[str, Any]:
                return {"constructed": True}

        environment = TemplateEnvironment(extensions=[Constructed])

        assert environment.globals["constructed"] is True

    def test_get_missing_extension_raises(self) -> None:
        """Test looking up an unregistered extension raises KeyError."""
        environment = TemplateEnvironment()

        assert not environment.has_extension(ShoutExtension)
        with pytest.raises(KeyError, match="not registered"):
            environment.get_extension(ShoutExtension)

    def test_later_globals_overwrite_earlier(self) -> None:
        """Test globals from later extensions replace earlier keys."""

        class Quiet(TemplateExtension):
            def get_globals(self) -> dict[str, Any]:
                return {"volume": 1}

        environment = TemplateEnvironment()
        environment.add_extension(ShoutExtension())
        environment.add_extension(Quiet())

        assert environment.globals["volume"] == 1


class TestDateFilter:
    """Tests for the core extension's date filter."""

    @pytest.fixture
    def core(self) -> CoreExtension:
        return CoreExtension(timezone=ZoneInfo("Europe/Paris"))

    def test_aware_datetime_converted(self, core: CoreExtension) -> None:
        """Test aware datetimes are converted to the configured zone."""
        value = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)

        assert core.format_date(value, "%Y-%m-%d %H:%M") == "2024-01-15 13:00"

    def test_naive_datetime_assumed_local(self, core: CoreExtension) -> None:
        """Test naive datetimes are taken as already in the configured zone."""
        value = datetime(2024, 1, 15, 12, 0)

        assert core.format_date(value, "%H:%M %Z") == "12:00 CET"

    def test_timestamp_and_iso_string(self, core: CoreExtension) -> None:
        """Test timestamps and ISO strings are accepted."""
        assert core.format_date(0, "%Y-%m-%d %H:%M") == "1970-01-01 01:00"
        assert core.format_date("2024-07-01T10:00:00+00:00", "%H:%M") == "12:00"

    def test_plain_date(self, core: CoreExtension) -> None:
        """Test dates are formatted at midnight."""
        assert core.format_date(date(2024, 3, 1)) == "March 01, 2024 00:00"

    def test_filter_in_template(self) -> None:
        """Test the filter uses the environment timezone."""
        environment = TemplateEnvironment(timezone=ZoneInfo("America/New_York"))
        value = datetime(2024, 1, 15, 17, 0, tzinfo=UTC)

        rendered = environment.from_string("{{ when | date('%H:%M') }}").render(when=value)

        assert rendered == "12:00"


class TestRuntimeChain:
    """Tests for runtime loader chaining."""

    def test_no_loaders_raises(self) -> None:
        """Test missing runtimes raise RuntimeNotFoundError."""
        environment = TemplateEnvironment()

        with pytest.raises(RuntimeNotFoundError, match="Formatter"):
            environment.get_runtime("Formatter")

    def test_runtime_cached(self) -> None:
        """Test each runtime is built once per environment."""
        factory = Mock(return_value=object())
        environment = TemplateEnvironment()
        environment.add_runtime_loader(FactoryRuntimeLoader({"Formatter": factory}))

        first = environment.get_runtime("Formatter")
        second = environment.get_runtime("Formatter")

        assert first is second
        factory.assert_called_once_with()

    def test_falls_through_to_next_loader(self) -> None:
        """Test a None result moves on to the next loader."""
        empty = Mock(spec=RuntimeLoader)
        empty.load.return_value = None
        environment = TemplateEnvironment()
        environment.add_runtime_loader(empty)
        environment.add_runtime_loader(FactoryRuntimeLoader({"Formatter": lambda: "fmt"}))

        assert environment.get_runtime("Formatter") == "fmt"
        empty.load.assert_called_once_with("Formatter")

    def test_none_everywhere_raises(self) -> None:
        """Test exhausting the chain raises."""
        environment = TemplateEnvironment()
        environment.add_runtime_loader(FactoryRuntimeLoader())

        with pytest.raises(RuntimeNotFoundError):
            environment.get_runtime("Formatter")
