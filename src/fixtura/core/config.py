# src/fixtura/core/config.py
"""
Configuration schema and loading for Fixtura.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# Dotted module path, e.g. "tests.fixtures.browser"
_MODULE_PATH_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


class EngineSettings(BaseModel):
    """Behaviour switches for the fixture pool."""

    model_config = {"frozen": True, "extra": "forbid"}

    detect_cycles: bool = Field(
        default=True,
        description="Fail fast with CyclicDependencyError instead of deadlocking on a dependency cycle",
    )
    warn_scope_mismatch: bool = Field(
        default=True,
        description="Log a warning when a worker fixture depends on a test fixture",
    )


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    json_output: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names from YAML and env vars."""
        if isinstance(v, str):
            return v.upper()
        return v


class PluginSettings(BaseModel):
    """Where fixture plugins come from."""

    model_config = {"frozen": True, "extra": "forbid"}

    load_entrypoints: bool = Field(
        default=True,
        description="Load plugins advertised under the 'fixtura' entry-point group",
    )
    modules: list[str] = Field(
        default_factory=list,
        description="Dotted module paths to import and register as plugins",
    )

    @field_validator("modules")
    @classmethod
    def validate_module_paths(cls, v: list[str]) -> list[str]:
        """Module entries must be importable dotted paths."""
        for module in v:
            if not _MODULE_PATH_PATTERN.match(module):
                raise ValueError(f"Invalid plugin module path: {module!r}")
        return v


class FixturaSettings(BaseModel):
    """Top-level settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    engine: EngineSettings = Field(default_factory=EngineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    plugins: PluginSettings = Field(default_factory=PluginSettings)


def load_settings(config_path: Path) -> FixturaSettings:
    """Load settings from a YAML file with environment variable overrides.

    Precedence, highest first:
    1. Environment variables (FIXTURA_*), e.g. FIXTURA_ENGINE__DETECT_CYCLES=false
    2. Config file
    3. Defaults from the Pydantic schema

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FIXTURA",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys and its own internals
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return FixturaSettings(**raw_config)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def value_from_env(name: str, default: Any = None) -> Any:
    """Read a JSON-encoded environment variable.

    Unset variables return ``default``. Set variables are parsed as JSON, so
    ``HEADLESS=false`` yields ``False`` and ``WORKERS=4`` yields ``4``.

    Raises:
        ValueError: If the variable is set but is not valid JSON
    """
    if name not in os.environ:
        return default
    raw = os.environ[name]
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Environment variable {name} is not valid JSON: {raw!r}") from e
