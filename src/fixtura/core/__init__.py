"""Core infrastructure: configuration, logging, and the registration graph."""

from fixtura.core.config import (
    EngineSettings,
    FixturaSettings,
    LoggingSettings,
    PluginSettings,
    load_settings,
    value_from_env,
)
from fixtura.core.graph import DependencyGraph
from fixtura.core.logging import configure_logging

__all__ = [
    "DependencyGraph",
    "EngineSettings",
    "FixturaSettings",
    "LoggingSettings",
    "PluginSettings",
    "configure_logging",
    "load_settings",
    "value_from_env",
]
