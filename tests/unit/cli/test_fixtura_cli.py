# tests/unit/cli/test_fixtura_cli.py
"""Tests for the fixtura CLI (check / graph)."""

import json
import logging
import textwrap
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from fixtura.cli import app

runner = CliRunner()

VALID_PLUGIN = textwrap.dedent(
    """
    from fixtura.plugins import hookimpl


    async def browser():
        yield "chromium"


    async def page(browser):
        yield "page"


    @hookimpl
    def fixtura_register_fixtures(session):
        session.register_worker_fixture("browser", browser)
        session.register_fixture("page", page, deps=["browser"])
    """
)

CYCLIC_PLUGIN = textwrap.dedent(
    """
    from fixtura.plugins import hookimpl


    async def a(b):
        yield "a"


    async def b(a):
        yield "b"


    @hookimpl
    def fixtura_register_fixtures(session):
        session.register_fixture("a", a, deps=["b"])
        session.register_fixture("b", b, deps=["a"])
    """
)

MISSING_PLUGIN = textwrap.dedent(
    """
    from fixtura.plugins import hookimpl


    async def page(browser):
        yield "page"


    @hookimpl
    def fixtura_register_fixtures(session):
        session.register_fixture("page", page, deps=["browser"])
    """
)


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI callback reconfigures logging onto CliRunner's temporary stream."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def plugin_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name, source in (
        ("fixtura_cli_valid", VALID_PLUGIN),
        ("fixtura_cli_cyclic", CYCLIC_PLUGIN),
        ("fixtura_cli_missing", MISSING_PLUGIN),
    ):
        (tmp_path / f"{name}.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))
    return tmp_path


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "fixtura version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.stdout
        assert "graph" in result.stdout


class TestCheck:
    def test_valid_registry(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "check", "--module", "fixtura_cli_valid"])

        assert result.exit_code == 0
        assert "OK: 2 fixtures registered" in result.stdout

    def test_cycle_fails(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "check", "-m", "fixtura_cli_cyclic"])

        assert result.exit_code == 1
        assert "cycle" in result.output

    def test_missing_dependency_fails(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "check", "-m", "fixtura_cli_missing"])

        assert result.exit_code == 1
        assert "Unknown fixture: 'browser'" in result.output

    def test_unimportable_module(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "check", "-m", "fixtura_cli_does_not_exist"])

        assert result.exit_code == 1
        assert "Cannot load plugin" in result.output

    def test_settings_file_modules(self, plugin_dir: Path) -> None:
        settings = plugin_dir / "fixtura.yaml"
        settings.write_text("plugins:\n  load_entrypoints: false\n  modules:\n    - fixtura_cli_valid\n")

        result = runner.invoke(app, ["--no-dotenv", "check", "--settings", str(settings)])

        assert result.exit_code == 0
        assert "OK: 2 fixtures registered" in result.stdout

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "check", "--settings", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1
        assert "Settings file not found" in result.output


class TestGraph:
    def test_console_output(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "graph", "-m", "fixtura_cli_valid"])

        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines[0].split() == ["browser", "worker", "-"]
        assert lines[1].split() == ["page", "test", "browser"]

    def test_json_output(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "graph", "-m", "fixtura_cli_valid", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"name": "browser", "scope": "worker", "deps": []},
            {"name": "page", "scope": "test", "deps": ["browser"]},
        ]

    def test_cycle_fails(self, plugin_dir: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "graph", "-m", "fixtura_cli_cyclic"])

        assert result.exit_code == 1
