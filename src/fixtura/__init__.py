"""
Fixtura: asynchronous fixture dependency injection for test runners.

Fixtures are named values produced by async factories. Factories declare
the fixtures they need; the engine resolves the graph, creates each fixture
at most once per scope, and tears dependents down before their dependencies.
"""

from fixtura.contracts import (
    CyclicDependencyError,
    FixtureError,
    Scope,
    TeardownError,
    UnknownFixtureError,
)
from fixtura.engine import FixturePool, FixtureSession, fixture_dependencies, uses

__version__ = "0.1.0"

__all__ = [
    "CyclicDependencyError",
    "FixtureError",
    "FixturePool",
    "FixtureSession",
    "Scope",
    "TeardownError",
    "UnknownFixtureError",
    "fixture_dependencies",
    "uses",
]
