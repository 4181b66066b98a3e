"""Fixture plugins via pluggy.

A plugin is any object (often a module) with a ``fixtura_register_fixtures``
hookimpl. Plugins are registered directly, by dotted module path, or
discovered from the ``fixtura`` entry-point group.
"""

from fixtura.plugins.hookspecs import PROJECT_NAME, hookimpl, hookspec
from fixtura.plugins.manager import FixturePluginManager

__all__ = [
    "PROJECT_NAME",
    "FixturePluginManager",
    "hookimpl",
    "hookspec",
]
