# src/fixtura/plugins/manager.py
"""Plugin manager for fixture libraries.

Uses pluggy for hook-based plugin registration.
"""

import importlib
from types import ModuleType
from typing import TYPE_CHECKING, Any

import pluggy
import structlog

from fixtura.core.config import PluginSettings
from fixtura.plugins.hookspecs import PROJECT_NAME, FixturaFixtureSpec

if TYPE_CHECKING:
    from fixtura.engine.session import FixtureSession

slog = structlog.get_logger(__name__)


class FixturePluginManager:
    """Collects fixture plugins and applies them to sessions.

    Usage:
        manager = FixturePluginManager()
        manager.register_module("tests.fixtures.browser")
        manager.load_entrypoints()

        session = FixtureSession()
        session.load_plugins(manager)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FixturaFixtureSpec)

    @classmethod
    def from_settings(cls, settings: PluginSettings) -> "FixturePluginManager":
        """Build a manager with the modules and entry points named in settings."""
        manager = cls()
        for module in settings.modules:
            manager.register_module(module)
        if settings.load_entrypoints:
            manager.load_entrypoints()
        return manager

    def register(self, plugin: Any, name: str | None = None) -> None:
        """Register a plugin object or module.

        Raises:
            ValueError: If the plugin (or its name) is already registered
        """
        plugin_name = self._pm.register(plugin, name=name)
        slog.debug("plugin_registered", plugin=plugin_name)

    def register_module(self, dotted_name: str) -> ModuleType:
        """Import a module by dotted path and register it as a plugin.

        Registering the same module twice is a no-op.

        Raises:
            ModuleNotFoundError: If the module cannot be imported
        """
        module = importlib.import_module(dotted_name)
        if not self._pm.is_registered(module):
            self.register(module, name=dotted_name)
        return module

    def load_entrypoints(self) -> int:
        """Load plugins advertised under the ``fixtura`` entry-point group.

        Returns:
            Number of plugins loaded
        """
        count = self._pm.load_setuptools_entrypoints(PROJECT_NAME)
        slog.debug("plugin_entrypoints_loaded", count=count)
        return count

    def get_plugin_names(self) -> list[str]:
        """Names of all registered plugins, sorted."""
        return sorted(name for name, _ in self._pm.list_name_plugin())

    def apply(self, session: "FixtureSession") -> None:
        """Call every plugin's fixtura_register_fixtures hook on ``session``."""
        self._pm.hook.fixtura_register_fixtures(session=session)
