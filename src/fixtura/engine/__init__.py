"""Fixture engine: dependency declarations, fixture lifecycle, pool, session."""

from fixtura.engine.fixture import Fixture, Registration
from fixtura.engine.introspect import fixture_dependencies, uses
from fixtura.engine.pool import FixturePool
from fixtura.engine.session import FixtureSession

__all__ = [
    "Fixture",
    "FixturePool",
    "FixtureSession",
    "Registration",
    "fixture_dependencies",
    "uses",
]
