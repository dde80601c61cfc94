"""jinjawire CLI interface.

Commands:
- check: Build the environment from config and report what was wired
- render: Render a template with the configured environment

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log output
- --version: Show version and exit
"""

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from jinja2 import TemplateError

from jinjawire import __version__
from jinjawire.config import build_container, load_config
from jinjawire.environment import TemplateEnvironment
from jinjawire.exceptions import JinjawireError
from jinjawire.factory import EnvironmentFactory
from jinjawire.utils.logging import configure_from_cli, get_logger

app = typer.Typer(
    name="jinjawire",
    help="Build and inspect Jinja2 environments wired from configuration",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: dict[str, Any] = {}
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"jinjawire {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log output"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """jinjawire - configured Jinja2 environments from a service container."""
    global _config

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        _config = load_config(config_path=config)
    except (FileNotFoundError, JinjawireError) as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _build_environment() -> TemplateEnvironment:
    try:
        return EnvironmentFactory()(build_container(_config))
    except JinjawireError as e:
        _logger.error(str(e))
        raise typer.Exit(1)


def _summary(environment: TemplateEnvironment) -> dict[str, Any]:
    return {
        "debug": environment.debug,
        "strict_variables": environment.strict_variables,
        "auto_reload": environment.auto_reload,
        "cache": str(environment.cache_dir) if environment.cache_dir else False,
        "timezone": str(environment.timezone),
        "extensions": sorted(environment.extensions),
        "runtime_loaders": [type(loader).__name__ for loader in environment.runtime_loaders],
        "globals": sorted(
            name for name, value in environment.globals.items() if not callable(value)
        ),
    }


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the summary as JSON"),
    ] = False,
) -> None:
    """Build the environment and print what was configured.

    Exit codes:
        0: Environment built successfully
        1: Configuration, extension or runtime loader error
    """
    environment = _build_environment()
    summary = _summary(environment)

    if json_output:
        typer.echo(json.dumps(summary, indent=2))
        return

    typer.echo("Environment")
    typer.echo(f"  debug:            {summary['debug']}")
    typer.echo(f"  strict_variables: {summary['strict_variables']}")
    typer.echo(f"  auto_reload:      {summary['auto_reload']}")
    typer.echo(f"  cache:            {summary['cache']}")
    typer.echo(f"  timezone:         {summary['timezone']}")
    typer.echo("  extensions:")
    for identifier in summary["extensions"]:
        typer.echo(f"    - {identifier}")
    if summary["runtime_loaders"]:
        typer.echo("  runtime loaders:")
        for name in summary["runtime_loaders"]:
            typer.echo(f"    - {name}")


# =============================================================================
# render command
# =============================================================================


def _parse_vars(pairs: list[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got: {pair}", param_hint="--var")
        variables[key] = value
    return variables


@app.command()
def render(
    template: Annotated[
        str,
        typer.Argument(help="Template file, or template name for the configured paths"),
    ],
    var: Annotated[
        list[str] | None,
        typer.Option("--var", help="Template variable as KEY=VALUE (repeatable)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write output to file instead of stdout"),
    ] = None,
) -> None:
    """Render a template with the configured environment.

    Exit codes:
        0: Rendered successfully
        1: Configuration or template error
    """
    variables = _parse_vars(var or [])
    environment = _build_environment()

    template_path = Path(template)
    if not template_path.is_file() and environment.loader is None:
        _logger.error(f"Template file not found and no template paths configured: {template}")
        raise typer.Exit(1)

    try:
        if template_path.is_file():
            compiled = environment.from_string(template_path.read_text(encoding="utf-8"))
        else:
            compiled = environment.get_template(template)
        rendered = compiled.render(**variables)
    except TemplateError as e:
        _logger.error(f"Failed to render {template}: {e}")
        raise typer.Exit(1)

    if output is None:
        typer.echo(rendered)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered, encoding="utf-8")
    _logger.info(f"Wrote {output}")
