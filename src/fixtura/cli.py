# src/fixtura/cli.py
"""Fixtura CLI: inspect the fixtures that plugins register.

Commands:
    check   Validate registrations (unknown dependencies, cycles)
    graph   Print fixtures in setup order with scope and dependencies
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

import typer
from pydantic import ValidationError

from fixtura import __version__
from fixtura.contracts import CyclicDependencyError, UnknownFixtureError
from fixtura.core.config import FixturaSettings, LoggingSettings, load_settings
from fixtura.core.graph import DependencyGraph
from fixtura.engine.session import FixtureSession
from fixtura.plugins.manager import FixturePluginManager

__all__ = ["app"]

app = typer.Typer(
    name="fixtura",
    help="Fixtura: async fixture dependency injection for test runners.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fixtura version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Raises:
        typer.Exit: If an explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Fixtura: async fixture dependency injection for test runners."""
    from fixtura.core.logging import configure_logging

    configure_logging(LoggingSettings(level="DEBUG" if verbose else "INFO", json_output=json_logs))

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)


def _build_graph(settings_path: Path | None, modules: list[str] | None) -> DependencyGraph:
    """Register every plugin's fixtures on a fresh session and return its graph.

    Raises:
        typer.Exit: On unreadable settings or unimportable plugin modules
    """
    settings = FixturaSettings()
    if settings_path is not None:
        settings_path = settings_path.expanduser()
        try:
            settings = load_settings(settings_path)
        except FileNotFoundError:
            typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
            raise typer.Exit(1) from None
        except ValidationError as e:
            typer.echo(f"Error: Invalid settings in {settings_path}:\n{e}", err=True)
            raise typer.Exit(1) from None

    try:
        manager = FixturePluginManager.from_settings(settings.plugins)
        for module in modules or []:
            manager.register_module(module)
    except ImportError as e:
        typer.echo(f"Error: Cannot load plugin: {e}", err=True)
        raise typer.Exit(1) from None

    session = FixtureSession(settings=settings)
    session.load_plugins(manager)
    return session.pool.dependency_graph()


_SETTINGS_OPTION = typer.Option(None, "--settings", "-s", help="Path to settings YAML file.")
_MODULE_OPTION = typer.Option(None, "--module", "-m", help="Plugin module to load (repeatable).")


@app.command()
def check(
    settings: Path | None = _SETTINGS_OPTION,
    module: list[str] | None = _MODULE_OPTION,
) -> None:
    """Validate fixture registrations: every dependency registered, no cycles."""
    graph = _build_graph(settings, module)
    try:
        graph.validate()
    except (UnknownFixtureError, CyclicDependencyError) as e:
        typer.secho(f"Invalid: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    typer.secho(f"OK: {len(graph.setup_order())} fixtures registered", fg=typer.colors.GREEN)


@app.command()
def graph(
    settings: Path | None = _SETTINGS_OPTION,
    module: list[str] | None = _MODULE_OPTION,
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured).",
    ),
) -> None:
    """Print registered fixtures in setup order."""
    dependency_graph = _build_graph(settings, module)
    try:
        order = dependency_graph.setup_order()
    except CyclicDependencyError as e:
        typer.secho(f"Invalid: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    rows = [
        {
            "name": name,
            "scope": str(dependency_graph.scope_of(name)),
            "deps": list(dependency_graph.dependencies(name)),
        }
        for name in order
    ]
    if output_format == "json":
        typer.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        deps = ", ".join(row["deps"]) if row["deps"] else "-"
        typer.echo(f"{row['name']:<24} {row['scope']:<8} {deps}")


if __name__ == "__main__":
    app()
